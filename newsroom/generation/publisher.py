"""
Article publisher: one generation request from credentials to stored article.

The flow is linear:

    authenticate -> validate request -> resolve category -> acquire source
    -> validate source -> price -> check credits -> compose prompt -> generate
    -> parse -> SEO -> resolve slug -> resolve image -> persist -> deduct

Any failure before persistence aborts the request with a typed error and
nothing is written. Credit deduction runs as a background task after the
article is stored; its failures are logged and never reach the caller.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Protocol, Set, Tuple

from pydantic import ValidationError

from newsroom.core.exceptions import (
    GenerationError,
    InsufficientCreditsError,
    NewsroomError,
    RequestValidationError,
)
from newsroom.core.logging import get_logger
from newsroom.core.models import Category, Tenant
from .auth import AuthContext, TenantLookup, authenticate
from .credits import CreditClient, compute_article_cost
from .images import ImageResolver
from .llm_provider import NEWS_SYSTEM_INSTRUCTION, LLMProvider
from .models import (
    Aggressiveness,
    ArticleLengthConfig,
    CreditCheck,
    GenerateArticleResponse,
    GeneratedArticle,
    GenerationRequest,
    ImageResult,
    PromptContext,
    SEOMetadata,
    ServiceArea,
    SourceContent,
)
from .parser import parse_article_response
from .prompt_builder import build_article_prompt
from .seo import generate_seo_metadata
from .slugs import resolve_unique_slug
from .source_quality import validate_source_material
from .web_search import SourceAcquirer, generate_search_query

logger = get_logger(__name__)

ARTICLE_MAX_TOKENS = 2800
DEFAULT_JOURNALIST = "AI Reporter"
EXISTING_TITLES_LIMIT = 20


class ArticleStore(Protocol):
    async def slug_exists(self, tenant_id: str, slug: str) -> bool: ...

    async def add_article(self, data: Dict[str, Any]) -> str: ...

    async def recent_titles(self, tenant_id: str, limit: int = 20) -> List[str]: ...


def find_category(tenant: Tenant, category_id: str) -> Optional[Category]:
    for category in tenant.categories or []:
        if category.id == category_id:
            return category
    return None


def journalist_persona(tenant: Tenant, journalist_id: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """(name, persona) of a configured journalist, if the tenant has one with that id."""
    if not journalist_id:
        return None, None
    for journalist in (tenant.ai_settings or {}).get("journalists") or []:
        if journalist.get("id") == journalist_id:
            return journalist.get("name"), journalist.get("persona")
    return None, None


def _aggressiveness(ai_settings: Mapping[str, Any]) -> Optional[Aggressiveness]:
    value = ai_settings.get("aggressiveness")
    try:
        return Aggressiveness(value) if value else None
    except ValueError:
        logger.warning(f"Ignoring unknown aggressiveness setting: {value}")
        return None


class ArticlePublisher:
    """Orchestrates the article pipeline over injected clients."""

    def __init__(
        self,
        provider: LLMProvider,
        acquirer: SourceAcquirer,
        image_resolver: ImageResolver,
        credits: CreditClient,
        platform_secret: Optional[str] = None,
    ):
        self.provider = provider
        self.acquirer = acquirer
        self.image_resolver = image_resolver
        self.credits = credits
        self.platform_secret = platform_secret
        self._pending: Set[asyncio.Task] = set()

    @property
    def costs(self) -> Mapping[str, int]:
        """The credit client's price table."""
        return self.credits.costs

    async def handle(
        self,
        headers: Mapping[str, str],
        body: Any,
        tenants: TenantLookup,
        articles: ArticleStore,
    ) -> Tuple[int, GenerateArticleResponse]:
        """
        Run one request end to end and always answer with an envelope.

        Returns:
            (HTTP status, response envelope); elapsed time is set on both paths
        """
        start_time = time.monotonic()
        try:
            auth = await authenticate(headers, tenants, self.platform_secret)
            try:
                request = GenerationRequest.model_validate(body or {})
            except ValidationError as e:
                raise RequestValidationError(f"Invalid request body: {e.errors()[0]['msg']}") from e

            response = await self.publish(auth, request, articles)
            response.generation_time_ms = int((time.monotonic() - start_time) * 1000)
            return 200, response

        except NewsroomError as e:
            logger.error(f"Article generation failed ({e.status_code}): {e.message}")
            status_code, error = e.status_code, e.message
            credits_required = e.credits_required if isinstance(e, InsufficientCreditsError) else None
            credits_remaining = e.credits_remaining if isinstance(e, InsufficientCreditsError) else 0
        except Exception as e:
            logger.exception(f"Unexpected error generating article: {e}")
            status_code, error = 500, str(e) or "Failed to generate article"
            credits_required, credits_remaining = None, 0

        return status_code, GenerateArticleResponse(
            success=False,
            error=error,
            generation_time_ms=int((time.monotonic() - start_time) * 1000),
            model="unknown",
            credits_used=0,
            credits_remaining=credits_remaining,
            credits_required=credits_required,
        )

    async def publish(
        self,
        auth: AuthContext,
        request: GenerationRequest,
        articles: ArticleStore,
    ) -> GenerateArticleResponse:
        tenant = auth.tenant
        started_at = time.monotonic()

        if not request.category_id:
            raise RequestValidationError("categoryId is required")
        if request.source_content is None and not request.use_web_search:
            raise RequestValidationError("Either sourceContent or useWebSearch must be provided")

        category = find_category(tenant, request.category_id)
        if category is None:
            raise RequestValidationError(f"Category not found: {request.category_id}")

        service_area = ServiceArea.model_validate(tenant.service_area or {})
        source, from_web_search = await self._acquire_source(request, category, service_area)

        skip_credits = request.skip_credits and auth.is_platform
        credits_needed = compute_article_cost(request.generate_seo, request.use_web_search, self.costs)
        if skip_credits:
            credit_check = CreditCheck(allowed=True, credits_remaining=-1)
        else:
            credit_check = await self.credits.check(tenant.id, credits_needed)
            if not credit_check.allowed:
                raise InsufficientCreditsError(
                    credit_check.message or "Insufficient credits",
                    credits_required=credits_needed,
                    credits_remaining=credit_check.credits_remaining,
                )

        ai_settings = tenant.ai_settings or {}
        journalist_name, persona = journalist_persona(tenant, request.journalist_id)
        journalist_name = request.journalist_name or journalist_name
        existing_titles = request.existing_titles or await articles.recent_titles(tenant.id, EXISTING_TITLES_LIMIT)

        context = PromptContext(
            business_name=tenant.business_name,
            service_area=service_area,
            category_name=category.name,
            category_directive=category.directive or "",
            editor_in_chief_directive=tenant.editor_in_chief_directive,
            article_specific_prompt=request.article_specific_prompt,
            journalist_name=journalist_name,
            journalist_persona=persona,
            source_content=source,
            from_web_search=from_web_search,
            target_word_count=request.target_word_count,
            writing_style=request.writing_style.value if request.writing_style else None,
            aggressiveness=_aggressiveness(ai_settings),
            article_length=ArticleLengthConfig.model_validate(tenant.article_length or {}),
            existing_titles=existing_titles,
        )

        config = self.provider.default_config.merge(
            model=ai_settings.get("defaultModel"),
            temperature=ai_settings.get("defaultTemperature"),
            max_tokens=ARTICLE_MAX_TOKENS,
        )
        try:
            raw = await self.provider.generate(
                build_article_prompt(context),
                config=config,
                system_instruction=NEWS_SYSTEM_INSTRUCTION,
            )
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError(f"Article generation failed: {e}") from e

        parsed = parse_article_response(raw, source)

        seo: Optional[SEOMetadata] = None
        if request.generate_seo:
            seo = await generate_seo_metadata(
                self.provider,
                config,
                parsed.title,
                parsed.content,
                category.name,
                service_area,
                tenant.business_name,
                author_name=journalist_name or DEFAULT_JOURNALIST,
            )

        slug = await resolve_unique_slug(parsed.slug, lambda candidate: articles.slug_exists(tenant.id, candidate))

        image = ImageResult()
        if request.generate_image:
            image = await self.image_resolver.resolve(parsed.title, category.name)
            if image.method == "gemini":
                credits_needed += self.costs["image_generation"]

        now = datetime.now(timezone.utc)
        article_id = await articles.add_article({
            "tenant_id": tenant.id,
            "title": parsed.title,
            "content": parsed.content,
            "excerpt": parsed.excerpt,
            "slug": slug,
            "tags": parsed.tags,
            "category_id": category.id,
            "category_name": category.name,
            "category_slug": category.slug or category.id,
            "journalist_id": request.journalist_id,
            "journalist_name": journalist_name or DEFAULT_JOURNALIST,
            "status": "published",
            "is_ai_generated": True,
            "source_url": source.url if source else None,
            "source_title": source.title if source else None,
            "image_url": image.url or None,
            "image_attribution": image.attribution,
            "image_method": image.method,
            "seo": seo.model_dump(by_alias=True) if seo else None,
            "prompts_used": {
                "editorInChief": tenant.editor_in_chief_directive or None,
                "category": category.directive or None,
                "articleSpecific": request.article_specific_prompt or None,
            },
            "generation_metadata": {
                "model": config.model,
                "generationTimeMs": int((time.monotonic() - started_at) * 1000),
                "usedWebSearch": request.use_web_search,
                "imageMethod": image.method,
            },
            "published_at": now,
            "created_at": now,
        })

        if not skip_credits:
            self.dispatch_deduction(tenant.id, credits_needed, parsed.title, article_id, config.model)

        remaining = credit_check.credits_remaining
        return GenerateArticleResponse(
            success=True,
            article=GeneratedArticle(
                title=parsed.title,
                content=parsed.content,
                excerpt=parsed.excerpt,
                tags=parsed.tags,
                slug=slug,
                meta_description=seo.meta_description if seo else None,
                keywords=seo.keywords if seo else None,
                hashtags=seo.hashtags if seo else None,
                image_url=image.url or None,
                image_attribution=image.attribution,
            ),
            credits_used=0 if skip_credits else credits_needed,
            # -1 means the ledger does not track this tenant
            credits_remaining=remaining - credits_needed if remaining >= 0 else -1,
            model=config.model,
        )

    async def _acquire_source(
        self,
        request: GenerationRequest,
        category: Category,
        service_area: ServiceArea,
    ) -> Tuple[Optional[SourceContent], bool]:
        """Manual sources are a hard gate; searched sources only warn when thin."""
        if request.source_content is not None:
            validation = validate_source_material(request.source_content)
            if not validation.valid:
                raise RequestValidationError(validation.reason or "Invalid source content")
            return request.source_content, False

        query = request.search_query or generate_search_query(
            category.slug or category.id,
            service_area.city,
            service_area.state,
            service_area.region,
        )
        source = await self.acquirer.acquire(query, focus_area=category.name)
        validation = validate_source_material(source)
        if not validation.valid:
            logger.warning(f"Web search source is weak, continuing in local-interest mode: {validation.reason}")
        return source, True

    def dispatch_deduction(
        self,
        tenant_id: str,
        credits: int,
        title: str,
        article_id: str,
        model: str,
    ) -> asyncio.Task:
        """Schedule the deduction; the caller does not wait for it."""
        task = asyncio.create_task(self._deduct(tenant_id, credits, title, article_id, model))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _deduct(self, tenant_id: str, credits: int, title: str, article_id: str, model: str) -> None:
        try:
            await self.credits.deduct(
                tenant_id,
                credits,
                description=f"Generated article: {title}",
                article_id=article_id,
                metadata={"model": model},
            )
        except Exception as e:
            logger.error(f"Credit deduction failed for tenant {tenant_id}, article {article_id}: {e}")

    async def drain(self) -> None:
        """Wait for in-flight deductions, used at shutdown and in tests."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
