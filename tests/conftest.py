from __future__ import annotations

import os
import random
import socket
import ssl
import sys
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Tuple

import OpenSSL
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))


def make_certificate(common_name: Optional[str]) -> Tuple[bytes, bytes]:
    """Return a self-signed (cert_pem, key_pem) pair for `common_name`."""
    key = OpenSSL.crypto.PKey()
    key.generate_key(OpenSSL.crypto.TYPE_RSA, 2048)
    cert = OpenSSL.crypto.X509()
    cert.set_version(2)
    if common_name:
        cert.get_subject().CN = common_name
    else:
        cert.get_subject().O = "certharvest tests"
    cert.set_serial_number(random.getrandbits(63))
    cert.gmtime_adj_notBefore(-60)
    cert.gmtime_adj_notAfter(3600)
    cert.set_issuer(cert.get_subject())
    cert.set_pubkey(key)
    cert.sign(key, "sha256")
    return (
        OpenSSL.crypto.dump_certificate(OpenSSL.crypto.FILETYPE_PEM, cert),
        OpenSSL.crypto.dump_privatekey(OpenSSL.crypto.FILETYPE_PEM, key),
    )


def der_certificate(common_name: Optional[str]) -> bytes:
    cert_pem, _ = make_certificate(common_name)
    x509 = OpenSSL.crypto.load_certificate(OpenSSL.crypto.FILETYPE_PEM, cert_pem)
    return OpenSSL.crypto.dump_certificate(OpenSSL.crypto.FILETYPE_ASN1, x509)


class _Handler(BaseHTTPRequestHandler):
    redirect_to: Optional[str] = None
    truncate_body: bool = False

    def do_GET(self) -> None:  # noqa: N802
        if self.redirect_to:
            self.send_response(302)
            self.send_header("Location", self.redirect_to)
            self.send_header("Content-Length", "0")
            self.end_headers()
            return
        body = b"hello from certharvest tests\n" * 64
        if self.truncate_body:
            self.send_response(200)
            self.send_header("Content-Length", "1000")
            self.end_headers()
            self.wfile.write(b"hello")
            return
        self.send_response(200)
        self.send_header("Content-Type", "text/plain")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args) -> None:  # noqa: A002
        return


class _QuietServer(ThreadingHTTPServer):
    daemon_threads = True

    def handle_error(self, request, client_address) -> None:
        return


class HTTPSServer:
    def __init__(self, server: _QuietServer, thread: threading.Thread):
        self.server = server
        self.thread = thread

    @property
    def port(self) -> int:
        return self.server.server_address[1]

    @property
    def target(self) -> str:
        return f"127.0.0.1:{self.port}"

    @property
    def url(self) -> str:
        return f"https://{self.target}"

    def stop(self) -> None:
        self.server.shutdown()
        self.server.server_close()
        self.thread.join(timeout=5)


@pytest.fixture
def https_server(tmp_path: Path) -> Iterator[Callable[..., HTTPSServer]]:
    """Factory starting local HTTPS servers with a chosen certificate CN."""
    started: List[HTTPSServer] = []

    def start(
        common_name: Optional[str],
        redirect_to: Optional[str] = None,
        truncate_body: bool = False,
    ) -> HTTPSServer:
        cert_pem, key_pem = make_certificate(common_name)
        index = len(started)
        cert_path = tmp_path / f"server-{index}.crt"
        key_path = tmp_path / f"server-{index}.key"
        cert_path.write_bytes(cert_pem)
        key_path.write_bytes(key_pem)

        context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        context.load_cert_chain(str(cert_path), str(key_path))

        handler = type("Handler", (_Handler,), {"redirect_to": redirect_to, "truncate_body": truncate_body})
        server = _QuietServer(("127.0.0.1", 0), handler)
        server.socket = context.wrap_socket(server.socket, server_side=True)
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        item = HTTPSServer(server, thread)
        started.append(item)
        return item

    yield start
    for item in started:
        item.stop()


@pytest.fixture
def closed_port() -> int:
    """A local port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def silent_port() -> Iterator[int]:
    """A local port that accepts TCP connections but never speaks."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        sock.listen(16)
        yield sock.getsockname()[1]
