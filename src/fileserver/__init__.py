"""
=============================================================================
FILESERVER - Minimal HTTP/1.x File Server on Raw Sockets
=============================================================================

Serves files from a directory (the working directory by default) to any
client that sends ``GET /<path> HTTP/1.x``. One worker thread handles one
connection; one connection carries one request.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    fileserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m fileserver)
    ├── server.py            # FileServer: wiring, banner, lifecycle
    ├── config.py            # ServerConfig dataclass
    ├── access_log.py        # One record per connection
    ├── core/                # Networking plumbing
    │   ├── socket_server.py # bind/listen/accept loop
    │   ├── connection.py    # Client socket wrapper
    │   └── thread_pool.py   # Bounded worker pool
    ├── http/                # Protocol pieces, no sockets
    │   ├── request.py       # Request line tokenizer
    │   ├── url.py           # Percent-decoding
    │   ├── mime_types.py    # Extension → content type
    │   ├── response.py      # Status line, headers, streamed body
    │   └── status_codes.py  # 200 / 404
    └── handlers/
        ├── static.py        # Decoded path → response
        └── connection.py    # Per-connection pipeline

=============================================================================
QUICK START
=============================================================================

    $ cd /srv/www && python -m fileserver --port 8080
    $ curl http://127.0.0.1:8080/index.html

    from fileserver import FileServer, ServerConfig
    FileServer(ServerConfig(root_dir="./public")).run()

=============================================================================
"""

__version__ = "0.1.0"

from .config import ServerConfig
from .server import FileServer

__all__ = ["FileServer", "ServerConfig", "__version__"]
