"""Text, CSV, and Markdown renderers for kernel scan reports."""
