from pydantic import BaseModel


class MessageResponse(BaseModel):
    detail: str


class CountResponse(BaseModel):
    count: int
