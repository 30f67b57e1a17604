from dugsi.models.user import User
from dugsi.models.document import Document, InlinePayload, RemotePayload
from dugsi.models.subject import Subject

__all__ = ["User", "Document", "InlinePayload", "RemotePayload", "Subject"]
