"""
Pydantic models for the recordhub wire contract
"""

from pydantic import BaseModel, ConfigDict
from typing import Any, Dict, List, Literal, Optional


class ActionRequest(BaseModel):
    """Body of a write request"""
    action: str
    payload: Dict[str, Any] = {}


class DataResponse(BaseModel):
    """Successful read"""
    status: Literal["success"] = "success"
    data: Any


class WriteResponse(BaseModel):
    """Successful write"""
    status: Literal["success"] = "success"
    message: Optional[str] = None
    id: Optional[str] = None


class ErrorResponse(BaseModel):
    """Model for error responses"""
    status: Literal["error"] = "error"
    message: str
    field_errors: Optional[Dict[str, str]] = None


class TabularData(BaseModel):
    """Rows of one sheet; the header row is never part of rows"""
    headers: List[str]
    rows: List[List[Any]]


class UserProfile(BaseModel):
    """Row of the Users sheet returned by a successful login"""
    model_config = ConfigDict(coerce_numbers_to_str=True)

    UserID: str
    Name: str = ""
    Email: str = ""
    Phone: str = ""
    AccessCode: str = ""
    Role: str = ""
    Location: str = ""
