# /consulta

from fastapi import APIRouter, Depends, HTTPException, Query
from starlette.responses import PlainTextResponse

from approvalbridge.plugins.billing.lookup import BillingLookupError
from approvalbridge.server.container import ApprovalContainer

from .deps import get_container

router = APIRouter(tags=["billing"])


@router.get("/consulta", response_class=PlainTextResponse)
async def billing_lookup(
    nic: str | None = Query(None),  # noqa: B008
    container: ApprovalContainer = Depends(get_container),  # noqa: B008
) -> PlainTextResponse:
    """Proxy a NIC lookup to the billing portal; the upstream body is returned as-is."""
    if not nic:
        raise HTTPException(status_code=400, detail="Missing NIC")
    try:
        body = await container.billing.lookup(nic)
    except BillingLookupError as e:
        container.logger.for_namespace("api.billing").error("%s", e)
        raise HTTPException(status_code=500, detail="Error querying the billing service") from e
    return PlainTextResponse(body)
