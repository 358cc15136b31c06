from .composer import ImageComposer, stitch_vertically, storage_key

__all__ = ["ImageComposer", "stitch_vertically", "storage_key"]
