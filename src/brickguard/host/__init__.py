from .interfaces import Host, Player
from .omegga import OmeggaHost
from .rpc import RpcMessage, RpcTransport

__all__ = ["Host", "OmeggaHost", "Player", "RpcMessage", "RpcTransport"]
