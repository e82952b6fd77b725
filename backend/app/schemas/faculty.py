from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator


class DepartmentCreate(BaseModel):
    code: str = Field(min_length=1, max_length=20)
    name: str = Field(min_length=1, max_length=200)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        return value.strip().upper()


class DepartmentOut(BaseModel):
    id: str
    code: str
    name: str

    model_config = {"from_attributes": True}


class FacultyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    designation: str = Field(default="Faculty", min_length=1, max_length=200)
    email: EmailStr
    department_id: str = Field(min_length=1, max_length=36)


class FacultyOut(BaseModel):
    id: str
    name: str
    designation: str
    email: str
    department_id: str
    is_active: bool
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
