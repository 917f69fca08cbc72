from pydantic import BaseModel


class MessageResponse(BaseModel):
    message: str


class SignupResponse(MessageResponse):
    # Only set outside production, where no email is sent.
    verify_url: str | None = None
