import logging
from fastapi import APIRouter, Depends, Request
from webindex.core.domain_checker import DomainChecker
from webindex.dependencies import get_domain_checker, validate_domain_check_params
from webindex.utils.sse import stream_events

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/domain-check", summary="Check whether a domain is indexed, streaming progress events")
async def domain_check(
    request: Request,
    params: dict = Depends(validate_domain_check_params),
    checker: DomainChecker = Depends(get_domain_checker),
):
    """
    Checks whether the domain of `url` (or `domain`) is indexed. When `userEmail` is
    given and the user cannot read the domain yet, the user is granted access.
    """
    logger.info(f"Domain check requested: {params}")
    return stream_events(
        request,
        lambda token: checker.run(params["url"], params["domain"], params["user_email"], token),
    )
