from .fake_transport import FakeTransport, RecordedRequest, reply, login_ok

__all__ = [
    "FakeTransport",
    "RecordedRequest",
    "reply",
    "login_ok",
]
