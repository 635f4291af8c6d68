# routesync/common/errors.py


class RouteSyncError(Exception):
    """Base class for everything raised on purpose by routesync."""


class ConfigError(RouteSyncError):
    pass


class ResolutionError(RouteSyncError):
    """A peer target could not be turned into an address."""

    def __init__(self, target: str, reason: str = "no result"):
        super().__init__(f"cannot resolve {target}: {reason}")
        self.target = target
        self.reason = reason


class UpstreamUnavailable(RouteSyncError):
    """Router DHCP client status is missing or malformed."""


class RouterApiError(RouteSyncError):
    def __init__(self, method: str, path: str, status_code: int, detail: str = ""):
        msg = f"{method} {path} -> {status_code}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)
        self.method = method
        self.path = path
        self.status_code = status_code
        self.detail = detail


class RouteOperationError(RouteSyncError):
    """Creating or patching a static route failed."""


class DnsUpdateRejected(RouteSyncError):
    def __init__(self, address: str, errors: list | None = None):
        errors = errors or []
        super().__init__(f"dns update rejected for {address}: {errors or 'no detail'}")
        self.address = address
        self.errors = errors
