"""Attribution repair, report grouping, and the end-to-end scan pipeline."""
