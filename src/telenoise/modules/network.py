"""Network actions: outbound connect, local listener, and DNS resolution."""

from __future__ import annotations

import socket
import threading

import httpx

from telenoise.actions import (
    ActionInfo,
    BaseAction,
    CancelToken,
    Category,
    EmitFn,
    Params,
    ParamSpec,
    TechniqueRef,
)
from telenoise.telemetry import new_event, with_details, with_error

__all__ = ["NetConnect", "NetListen", "NetDNS"]

CONNECT_TIMEOUT = 3.0
ACCEPT_WINDOW = 5.0
POLL_INTERVAL = 0.1


def _join_host_port(host: str, port: str) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


class NetConnect(BaseAction):
    """TCP connect followed by an HTTP GET to the same address."""

    INFO = ActionInfo(
        name="net_connect",
        category=Category.NETWORK,
        description="Initiates a TCP connection and HTTP GET to a target host",
        techniques=(
            TechniqueRef("T1071", ".001", "Application Layer Protocol: Web Protocols"),
            TechniqueRef("T1043", "", "Commonly Used Port"),
        ),
        tags=("tcp", "http", "outbound"),
        min_os_version="12.0",
        author="telenoise",
    )
    PARAMS = (
        ParamSpec("target", "Target IP or hostname", default="127.0.0.1", example="10.0.0.1"),
        ParamSpec("port", "Target TCP port", default="8080", example="443"),
    )

    def generate(self, token: CancelToken, params: Params, emit: EmitFn) -> None:
        info = self.info()
        target = params.resolve("target", "127.0.0.1")
        port = params.resolve("port", "8080")
        address = _join_host_port(target, port)

        event = new_event(info, "tcp_connect", False, f"dialing TCP {address}")
        try:
            with socket.create_connection((target, int(port)), timeout=CONNECT_TIMEOUT):
                pass
        except (OSError, ValueError) as e:
            emit(with_error(event, e))
        else:
            event = new_event(info, "tcp_connect", True, f"TCP connection established to {address}")
            emit(with_details(event, {"address": address, "protocol": "tcp"}))

        token.raise_if_cancelled()

        url = f"http://{address}"
        try:
            response = httpx.get(url, timeout=CONNECT_TIMEOUT)
        except httpx.HTTPError as e:
            # A refused connection still produces the network telemetry.
            event = new_event(
                info, "http_get", True, f"HTTP GET {url} generated telemetry (connection refused expected)"
            )
            emit(with_details(event, {"url": url, "error": str(e)}))
        else:
            event = new_event(info, "http_get", True, f"HTTP GET {url} returned {response.status_code}")
            emit(with_details(event, {"url": url, "status_code": response.status_code}))

    def dry_run(self, params: Params) -> list[str]:
        address = _join_host_port(params.resolve("target", "127.0.0.1"), params.resolve("port", "8080"))
        return [
            f"TCP dial {address} with {CONNECT_TIMEOUT:g}s timeout",
            f"HTTP GET http://{address} with {CONNECT_TIMEOUT:g}s timeout",
        ]


class NetListen(BaseAction):
    """Bind a local TCP listener and accept one connection from itself."""

    INFO = ActionInfo(
        name="net_listen",
        category=Category.NETWORK,
        description="Opens a local TCP listener and simulates an inbound connection",
        techniques=(TechniqueRef("T1571", "", "Non-Standard Port"),),
        tags=("tcp", "listen", "inbound"),
        min_os_version="12.0",
        author="telenoise",
    )
    PARAMS = (
        ParamSpec("host", "Local address to bind", default="127.0.0.1", example="0.0.0.0"),
        ParamSpec("port", "Local port to bind, 0 for any free port", default="8080", example="9999"),
    )

    def __init__(self) -> None:
        self._listener: socket.socket | None = None
        self._client: threading.Thread | None = None

    def generate(self, token: CancelToken, params: Params, emit: EmitFn) -> None:
        info = self.info()
        host = params.resolve("host", "127.0.0.1")
        port = params.resolve_int("port", 8080)

        try:
            listener = socket.create_server((host, port))
        except OSError as e:
            message = f"failed to bind {_join_host_port(host, str(port))}"
            emit(with_error(new_event(info, "tcp_listen", False, message), e))
            raise
        self._listener = listener
        bound_port = listener.getsockname()[1]
        address = _join_host_port(host, str(bound_port))
        emit(with_details(new_event(info, "tcp_listen", True, f"listening on {address}"), {"address": address}))

        connect_host = "127.0.0.1" if host in ("0.0.0.0", "") else host
        self._client = threading.Thread(
            target=self._ping,
            args=(connect_host, bound_port),
            name="telenoise-net-listen-client",
            daemon=True,
        )
        self._client.start()

        listener.settimeout(POLL_INTERVAL)
        waited = 0.0
        while True:
            token.raise_if_cancelled()
            try:
                conn, remote = listener.accept()
                break
            except TimeoutError:
                waited += POLL_INTERVAL
                if waited >= ACCEPT_WINDOW:
                    raise TimeoutError(f"no inbound connection on {address} within {ACCEPT_WINDOW:g}s") from None

        with conn:
            remote_addr = _join_host_port(remote[0], str(remote[1]))
            event = new_event(info, "tcp_accept", True, f"accepted connection from {remote_addr}")
            emit(with_details(event, {"remote_addr": remote_addr}))

    @staticmethod
    def _ping(host: str, port: int) -> None:
        try:
            with socket.create_connection((host, port), timeout=CONNECT_TIMEOUT) as conn:
                conn.sendall(b"TELEMETRY_PING")
        except OSError:
            return

    def dry_run(self, params: Params) -> list[str]:
        host = params.resolve("host", "127.0.0.1")
        port = params.resolve("port", "8080")
        return [
            f"bind TCP {_join_host_port(host, port)}",
            "accept one connection from self",
        ]

    def cleanup(self) -> None:
        listener, self._listener = self._listener, None
        if listener is not None:
            listener.close()
        client, self._client = self._client, None
        if client is not None:
            client.join(timeout=CONNECT_TIMEOUT)


class NetDNS(BaseAction):
    """Resolve a list of domain names."""

    INFO = ActionInfo(
        name="net_dns",
        category=Category.NETWORK,
        description="Resolves a list of domains to generate DNS query telemetry",
        techniques=(TechniqueRef("T1071", ".004", "Application Layer Protocol: DNS"),),
        tags=("dns", "lookup", "outbound"),
        min_os_version="12.0",
        author="telenoise",
    )
    PARAMS = (
        ParamSpec(
            "domains",
            "Comma-separated list of domains to resolve",
            default="example.com,google.com,github.com",
            example="internal.corp,localhost",
        ),
    )

    def generate(self, token: CancelToken, params: Params, emit: EmitFn) -> None:
        info = self.info()
        domains = [d.strip() for d in params.resolve("domains", self.PARAMS[0].default).split(",")]

        for domain in filter(None, domains):
            token.raise_if_cancelled()
            event = new_event(info, "dns_lookup", False, f"resolving {domain}")
            try:
                results = socket.getaddrinfo(domain, None, proto=socket.IPPROTO_TCP)
            except (socket.gaierror, UnicodeError) as e:
                event = new_event(info, "dns_lookup", True, f"DNS lookup {domain} failed (telemetry generated)")
                emit(with_details(event, {"domain": domain, "error": str(e)}))
                continue
            addresses = sorted({sockaddr[0] for *_, sockaddr in results})
            event = new_event(info, "dns_lookup", True, f"DNS lookup {domain} resolved to {', '.join(addresses)}")
            emit(with_details(event, {"domain": domain, "addresses": addresses}))

    def dry_run(self, params: Params) -> list[str]:
        return [f"DNS resolve: {params.resolve('domains', self.PARAMS[0].default)}"]
