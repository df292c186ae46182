"""FBRTDB — Firebase Realtime Database REST client SDK."""

from fbrtdb.client.client import FirebaseClient
from fbrtdb.client.stream import EventStream, StreamState
from fbrtdb.events import KeepAlive, Put, StreamEvent

__all__ = ["EventStream", "FirebaseClient", "KeepAlive", "Put", "StreamEvent", "StreamState"]
