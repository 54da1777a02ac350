from pydantic import BaseModel, Field

class TokenRequest(BaseModel):
    patron_id: str = Field(..., min_length=1, max_length=50)

class Token(BaseModel):
    patron_id: str
    token: str
    token_type: str = "bearer"
    expires_in: int
