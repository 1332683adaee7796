from pydantic import BaseModel, Field


class CreateMessageRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=4096)

class CreateMessageResponse(BaseModel):
    id: str

class MessageResponse(BaseModel):
    id: str
    room_id: str
    content: str
    reaction_count: int = Field(..., ge=0)
    answered: bool
    created_at: str

class ReactionResponse(BaseModel):
    count: int
