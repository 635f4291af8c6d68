import httpx

from routesync.common.models import DnsUpdateResult

API_BASE = "https://api.cloudflare.com/client/v4"

class CloudflareClient:
    """Overwrites a single Cloudflare DNS record with the router's public address."""

    def __init__(self, zone_id: str, record_id: str, record_name: str, ttl: int,
                 auth_email: str, auth_key: str, timeout_sec: float, logger,
                 record_type: str = "A", transport: httpx.AsyncBaseTransport | None = None):
        self.url = f"{API_BASE}/zones/{zone_id}/dns_records/{record_id}"
        self.record_name = record_name
        self.ttl = ttl
        self.record_type = record_type
        self.headers = {
            "Content-Type": "application/json",
            "X-Auth-Email": auth_email,
            "X-Auth-Key": auth_key,
        }
        self.timeout = timeout_sec
        self.logger = logger
        self.transport = transport

    @classmethod
    def from_cfg(cls, cfg: dict, logger, transport=None) -> "CloudflareClient":
        c = cfg["cloudflare"]
        return cls(
            zone_id=c["zone_id"],
            record_id=c["record_id"],
            record_name=c["record_name"],
            ttl=int(c["ttl"]),
            auth_email=c["auth_email"],
            auth_key=c["auth_key"],
            timeout_sec=c["timeout_sec"],
            logger=logger,
            record_type=c.get("record_type", "A"),
            transport=transport,
        )

    async def set_record(self, address: str) -> DnsUpdateResult:
        payload = {
            "content": address,
            "name": self.record_name,
            "proxied": False,
            "ttl": self.ttl,
            "type": self.record_type,
        }
        # transport errors propagate; a rejected update comes back as ok=False
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as c:
            r = await c.put(self.url, json=payload, headers=self.headers)
        try:
            body = r.json()
        except ValueError:
            body = None
        res = DnsUpdateResult.from_response(address, r.status_code, body)
        if not res.ok:
            self.logger.warning(f"dns update rejected status={r.status_code} errors={res.errors}")
        return res
