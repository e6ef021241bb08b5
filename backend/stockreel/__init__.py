"""
stockreel: short-form video ingestion pipeline.

Files dropped into a watched directory tree are validated against platform
constraints, watermarked, probed, classified into a fixed content taxonomy,
thumbnailed and published to object storage plus a catalog table. The
source file is then moved to a processed or failed folder.

Subpackages:
    encoding     : Encoder interface (ffmpeg/ffprobe), thumbnails, frame sampling
    media        : metadata probing and acceptance validation
    classification: filename heuristic + injected image model
    watermark    : tiled text and full-frame image watermarking
    publishing   : storage/catalog boundary and publish step
    jobs         : queue items, state machine, events, worker loop
    watchfolders : directory watching and per-file routing
    monitoring   : read-mostly HTTP status API
    cli          : stockreel-watch, stockreel-watermark and stockreel-api commands
"""

__version__ = "0.1.0"
