"""Line-oriented parsers for tagged sources and benchmark logs."""
