"""
Command-line entry points.

- stockreel-watch: category folder watcher
- stockreel-watermark: standalone image watermark tool
- stockreel-api: status API server
"""
