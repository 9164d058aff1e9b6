"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing under the request pipeline.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SOCKET SERVER                                │
    │  • bind/listen on HOST:PORT                                         │
    │  • accept() loop, one Connection per client                         │
    │  • SIGINT/SIGTERM → graceful stop                                   │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ hands off each Connection
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          THREAD POOL                                 │
    │  • fixed number of workers, bounded queue                           │
    │  • caps how many connections are in flight                          │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ worker runs the connection handler
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CONNECTION                                  │
    │  • bounded request read, response write, graceful close             │
    │  • lifecycle state for logs and tests                               │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .thread_pool import ThreadPool

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "ThreadPool",
]
