from pydantic import BaseModel, Field


class UploadIn(BaseModel):
    image_base64: str = Field(min_length=1)
    folder: str = "uploads"


class UploadDeleteIn(BaseModel):
    url: str = Field(min_length=1)
