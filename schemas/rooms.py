from pydantic import BaseModel, Field


class CreateRoomRequest(BaseModel):
    theme: str = Field(..., min_length=1, max_length=255)

class CreateRoomResponse(BaseModel):
    id: str

class RoomResponse(BaseModel):
    id: str
    theme: str
    created_at: str

class RoomDetailsResponse(RoomResponse):
    listener_count: int
