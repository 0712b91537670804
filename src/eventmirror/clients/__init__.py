from eventmirror.clients.rpc import RPC, to_hex_block, topics_param

__all__ = ["RPC", "to_hex_block", "topics_param"]
