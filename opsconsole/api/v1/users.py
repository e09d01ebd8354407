"""
Account provisioning endpoints.
"""

from fastapi import APIRouter, status

from opsconsole.api.deps import Credential, Pipeline
from opsconsole.engines.mutation.account_provisioning import ProvisionAccountRequest
from opsconsole.schemas.users import CreateUserRequest, CreateUserResponse, ProfileResponse

router = APIRouter()


@router.post("/create", response_model=CreateUserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    data: CreateUserRequest,
    credential: Credential,
    pipeline: Pipeline,
):
    """
    Provision a new account (admin only).

    The response carries a password only when one was generated; a
    password supplied in the request is never echoed back.
    """
    result = await pipeline.provision_account(
        credential,
        ProvisionAccountRequest(**data.model_dump()),
    )
    return CreateUserResponse(
        user=ProfileResponse.from_profile(result.profile),
        password=result.generated_password,
    )
