from timelapse.storage.database import MetadataStore, Migration, MIGRATIONS
from timelapse.storage.cache import evict_old_cache, transcode_video, extract_frames

__all__ = [
    'MetadataStore',
    'Migration',
    'MIGRATIONS',
    'evict_old_cache',
    'transcode_video',
    'extract_frames',
]
