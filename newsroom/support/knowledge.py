"""
Static support knowledge base.

Shared read-only by the triage engine and the autopilot responder. It is a
module constant, so it is built once per process and never mutated.
"""

PLATFORM_NAME = "NewsroomAIOS"

FEATURE_CATALOG = """FEATURES
- AI article generation: articles are written per category from a manual source or a web search. Each category has its own editorial directive; the Editor-in-Chief directive applies to every article.
- Journalists: AI journalist personas can be assigned to categories and sign the articles they write.
- Scheduled generation: the platform runs generation for every active tenant on a schedule, spreading articles across enabled categories.
- Content editing: every article can be edited, unpublished or deleted from the admin Articles page.
- Images: featured images come from stock photos first and AI generation second. Editors can replace any image.
- Credits: AI operations consume credits (article 10, SEO pass 3, web search 1, AI image 5, fact check 2). Balance and history are under Account > Credits; plans renew monthly.
- Site configuration: branding, menus, categories and the service area are set under Settings.
- Domains: custom domains are connected under Settings > Domain. DNS changes can take up to 48 hours.
- Advertising, directory listings, events and community features are separate modules enabled per site.
- Team: owners invite editors and writers under Account > Team."""

KNOWN_ISSUES = """KNOWN ISSUES
- Articles generated from web search on quiet news days can read like general local features. This is expected: with thin source material the writer switches to an evergreen local-interest piece instead of inventing news.
- A new custom domain shows a certificate warning for up to an hour after DNS propagates while the certificate is issued.
- Credit balances on the dashboard can lag a completed generation by a minute.
- Stock photos occasionally repeat across articles in the same category."""

COMMON_CONFUSION = """COMMON QUESTIONS
- "My article has no image": image generation can be switched off per request, and no image is stored when neither source returns one. Add one manually from the article editor.
- "Why did generation fail with insufficient credits?": the full cost is checked before writing. Buy credits or wait for the monthly renewal.
- "Why does the article not mention my source?": web-search articles are written in natural news voice without "according to" phrasing; manual sources are attributed in the text.
- "How do I change the tone?": edit the Editor-in-Chief directive or the category directive under Settings > AI.
- "I can't log in": use Forgot Password on the login page; owners can reset team members from Account > Team."""

KNOWLEDGE_BASE = f"""{PLATFORM_NAME} SUPPORT KNOWLEDGE BASE

{PLATFORM_NAME} is a SaaS platform that provides AI-powered local newspaper websites. Tenants are newspaper owners who run their local news sites on it.

{FEATURE_CATALOG}

{KNOWN_ISSUES}

{COMMON_CONFUSION}
"""

SUPPORT_SYSTEM_INSTRUCTION = (
    f"You are a helpful support assistant for {PLATFORM_NAME}, a SaaS platform that provides "
    "AI-powered local newspaper websites. Tenants are newspaper owners who use the platform "
    "to run their local news sites. Common issues include: article generation, content editing, "
    "image management, user account access, billing/credits, site configuration, domain setup, "
    "advertising module, directory listings, events, and community features. "
    "Be concise, friendly, and professional. If the issue is clearly a bug, acknowledge it and "
    "assure them the engineering team will investigate. If it sounds like a how-to question, "
    "provide brief guidance. Always end by letting them know a human will follow up if needed. "
    "Only state facts found in the knowledge base; never invent features, settings or fixes."
)
