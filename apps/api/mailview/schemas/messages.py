from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from mailview.services.assembly.types import AssembledMessage


class EmailAddressOut(BaseModel):
    name: str
    email: str


class AssembledMessageOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    subject: str
    from_: list[EmailAddressOut] = Field(alias="from")
    to: list[EmailAddressOut]
    date: str
    html: str
    plain: str
    snippet: str

    @classmethod
    def from_message(cls, message: AssembledMessage) -> AssembledMessageOut:
        return cls(
            id=message.id,
            subject=message.subject,
            from_=[EmailAddressOut(name=a.name, email=a.email) for a in message.from_],
            to=[EmailAddressOut(name=a.name, email=a.email) for a in message.to],
            date=message.date,
            html=message.html,
            plain=message.plain,
            snippet=message.snippet,
        )
