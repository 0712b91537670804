from eventmirror.core.use_cases.sync import SyncResult, iter_chunks, sync_block_range

__all__ = ["SyncResult", "iter_chunks", "sync_block_range"]
