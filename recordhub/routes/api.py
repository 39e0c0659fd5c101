"""
Record read/write routes for the recordhub application
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request
from starlette.concurrency import run_in_threadpool

from recordhub.config import Config
from recordhub.errors import RecordHubError
from recordhub.models import ActionRequest, DataResponse, WriteResponse
from recordhub.service import RecordService

router = APIRouter()


def get_record_service(request: Request) -> RecordService:
    """Service instance attached to the application in create_app"""
    return request.app.state.service


@router.get(Config.API_PATH, response_model=DataResponse, tags=["Records"])
async def read_action(
    action: Optional[str] = Query(None, description="Read action, e.g. getAccounts or login"),
    accessCode: Optional[str] = Query(None, description="Access code (login only)"),
    role: Optional[str] = Query(None, description="Portal role (login only)"),
    service: RecordService = Depends(get_record_service),
):
    """
    Read a collection, or log in

    - **action**: getTickets, getAccounts, getTasks, getDirectory,
      getFinancingLedger, getProducts or login. Defaults to tickets.
    """
    try:
        if action == "login":
            user = await run_in_threadpool(service.login, accessCode, role)
            return DataResponse(data=user)

        # Cache population and backing-store reads are blocking; run in threadpool.
        data = await run_in_threadpool(service.read, action)
        return DataResponse(data=data)

    except RecordHubError:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Read failed: {str(e)}"
        )


@router.post(Config.API_PATH, response_model=WriteResponse, tags=["Records"])
async def write_action(
    request: ActionRequest = Body(...),
    service: RecordService = Depends(get_record_service),
):
    """
    Create, update or delete a record

    A successful write invalidates the cached copy of its collection.
    """
    try:
        result = await run_in_threadpool(service.write, request.action, request.payload)
        return WriteResponse(**result)

    except RecordHubError:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Write failed: {str(e)}"
        )
