from __future__ import annotations


class AssemblyError(RuntimeError):
    pass


class MalformedMessage(AssemblyError):
    pass


class MissingRawPayload(AssemblyError):
    def __init__(self, message_id: str) -> None:
        super().__init__(f"Message {message_id} has no raw payload")
        self.message_id = message_id


class AddressParseFailure(AssemblyError):
    pass
