import asyncio, ipaddress, socket

from routesync.common.errors import ResolutionError

def is_literal(target: str) -> bool:
    try:
        ipaddress.ip_address(target)
        return True
    except ValueError:
        return False

async def _lookup(host: str) -> list:
    loop = asyncio.get_running_loop()
    return await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)

async def resolve_peer(target: str, timeout: float = 5) -> str:
    # literal addresses never touch the network
    if is_literal(target):
        return target
    try:
        infos = await asyncio.wait_for(_lookup(target), timeout)
    except asyncio.TimeoutError:
        raise ResolutionError(target, f"timed out after {timeout}s")
    except OSError as e:
        raise ResolutionError(target, str(e))
    if not infos:
        raise ResolutionError(target)
    # (family, type, proto, canonname, sockaddr); /ip/route is IPv4, so prefer A records
    for family, _, _, _, sockaddr in infos:
        if family == socket.AF_INET:
            return sockaddr[0]
    return infos[0][4][0]
