from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from typing import Any, List, Optional


def success(
    data: Optional[Any] = None,
    message: str = "Success",
):
    response = {
        "success": True,
        "message": message,
    }

    if data is not None:
        response["data"] = data

    return jsonable_encoder(response, by_alias=True)


def error(
    message: str = "Error",
    error: Optional[str] = None,
    status_code: int = 400,
    data: Optional[Any] = None,
    errors: Optional[List[Any]] = None,
):
    content = {
        "success": False,
        "error": error or message,
        "message": message,
    }

    if data is not None:
        content["data"] = data
    if errors:
        content["errors"] = errors

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(content, by_alias=True),
    )
