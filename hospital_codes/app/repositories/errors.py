class DuplicateRecordError(Exception):
    """Raised by repositories when a unique constraint rejects a write"""
