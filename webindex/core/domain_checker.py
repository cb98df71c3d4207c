import asyncio
import logging
from typing import AsyncIterator, Optional

from webindex.core import progress
from webindex.core.progress import ProgressEvent, event
from webindex.models.document import utcnow
from webindex.services.vector_store import VectorStore, domain_from_url
from webindex.utils.cancellation import CancellationToken

logger = logging.getLogger(__name__)


class DomainChecker:
    """
    Reports whether a domain is indexed and, when a user is given, makes sure that
    user can read it, granting access to an already indexed domain if needed.
    """
    def __init__(self, vector_store: VectorStore):
        self.vector_store = vector_store

    async def run(
        self,
        url: Optional[str] = None,
        domain: Optional[str] = None,
        user_email: Optional[str] = None,
        token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[ProgressEvent]:
        token = token or CancellationToken()

        # A bare domain goes through the same hostname parsing as a URL
        target_url = url or f"https://{(domain or '').strip()}"
        try:
            target_domain = domain_from_url(target_url)
        except ValueError:
            logger.warning(f"Invalid URL format: {url or domain}")
            yield event(progress.ERROR, "Invalid URL format", error=f"Invalid URL: {url or domain}")
            return

        try:
            yield event(progress.START, f"Checking domain: {target_domain}", domain=target_domain)
            logger.info(f"Checking if domain is indexed: {target_domain}")

            yield event(progress.CHECKING_GLOBAL, "Checking if domain is indexed globally...", domain=target_domain)
            token.raise_if_cancelled()
            is_indexed = await asyncio.to_thread(self.vector_store.domain_exists, target_url)

            if not is_indexed:
                yield event(
                    progress.COMPLETE,
                    f'The domain "{target_domain}" has not been indexed yet. You can crawl it to make it searchable.',
                    domain=target_domain,
                    isIndexed=False,
                    status="Domain Not Indexed",
                    userHasAccess=False,
                    timestamp=utcnow().isoformat(),
                )
                return

            yield event(
                progress.DOMAIN_FOUND,
                f'Domain "{target_domain}" is indexed globally',
                domain=target_domain,
                isIndexed=True,
            )

            if not user_email:
                yield event(
                    progress.COMPLETE,
                    f'The domain "{target_domain}" has been previously indexed.',
                    domain=target_domain,
                    isIndexed=True,
                    status="Domain Already Indexed",
                    timestamp=utcnow().isoformat(),
                )
                return

            yield event(
                progress.CHECKING_USER_ACCESS,
                f'Checking if user "{user_email}" has access to domain...',
                domain=target_domain,
                userEmail=user_email,
            )
            token.raise_if_cancelled()
            user_domains = await asyncio.to_thread(self.vector_store.list_user_domains, user_email)

            if target_domain in user_domains:
                yield event(
                    progress.COMPLETE,
                    f'The domain "{target_domain}" has been previously indexed.',
                    domain=target_domain,
                    isIndexed=True,
                    status="Domain Already Indexed",
                    userEmail=user_email,
                    userHasAccess=True,
                    userAccessMessage=f'User "{user_email}" already has access to this domain.',
                    totalUserDomains=len(user_domains),
                    timestamp=utcnow().isoformat(),
                )
                return

            yield event(
                progress.ADDING_USER,
                f'Adding user "{user_email}" to existing domain "{target_domain}"...',
                domain=target_domain,
                userEmail=user_email,
            )
            token.raise_if_cancelled()
            updated = await asyncio.to_thread(self.vector_store.grant_access, user_email, target_domain)

            yield event(
                progress.USER_ADDED,
                f"Successfully added user to domain. Updated {updated} vectors.",
                domain=target_domain,
                userEmail=user_email,
                vectorsUpdated=updated,
            )
            yield event(
                progress.COMPLETE,
                f'The domain "{target_domain}" was already indexed. User "{user_email}" has been granted access.',
                domain=target_domain,
                isIndexed=True,
                status="Domain Already Indexed - User Added",
                userEmail=user_email,
                userHasAccess=True,
                userAccessMessage=f'User "{user_email}" now has access to this domain.',
                vectorsUpdated=updated,
                totalUserDomains=len(user_domains) + 1,
                timestamp=utcnow().isoformat(),
            )
        except Exception as e:
            message = str(e) or type(e).__name__
            logger.error(f"Error in domain check for {target_domain}: {message}")
            yield event(progress.ERROR, f"Domain check failed: {message}", domain=target_domain, error=message)
