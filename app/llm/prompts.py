"""
Prompts for the editorial tasks.

Each builder takes an optional style guide, which is injected ahead of the
task instructions when non-empty.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from app.constants import MarkerTags, SocialPlatforms

EDITOR_PERSONA = (
    "You are an expert editor for Persuasion, a magazine focused on defending "
    "liberal democracy and promoting open debate."
)


def _guide_section(title: str, style_guide: Optional[str]) -> str:
    if not style_guide or not style_guide.strip():
        return ""
    return f"\n\n{title}:\n{style_guide.strip()}\n\n---\n\n"


# -----------------------------------------------------------------------------
# Headlines and social
# -----------------------------------------------------------------------------

HEADLINE_TEMPLATE = """{persona}
{guide}
Generate 3 compelling headline and dek (subheadline) pairs for this article. Each pair should:
- Capture the essence of the article
- Be engaging and thought-provoking
- Match Persuasion's tone: intelligent, accessible, principled

Format your response as JSON:
{{
  "suggestions": [
    {{ "headline": "...", "dek": "..." }},
    {{ "headline": "...", "dek": "..." }},
    {{ "headline": "...", "dek": "..." }}
  ]
}}

Article:
{text}"""


def build_headline_prompt(text: str, style_guide: Optional[str] = None) -> str:
    return HEADLINE_TEMPLATE.format(
        persona=EDITOR_PERSONA,
        guide=_guide_section("Style Guide for Headlines", style_guide),
        text=text,
    )


PLATFORM_INSTRUCTIONS = {
    SocialPlatforms.SUBSTACK: (
        "Substack Notes: Can be longer (up to 500 chars), include context, can "
        "reference the article directly. NEVER use hashtags."
    ),
    SocialPlatforms.TWITTER: (
        "Twitter/X: Maximum 280 characters. Punchy, engaging. NEVER use hashtags."
    ),
    SocialPlatforms.INSTAGRAM: (
        "Instagram: Caption style, can be slightly longer, emoji-friendly, engaging "
        "hook. Minimal hashtags only if truly necessary."
    ),
}

SOCIAL_TEMPLATE = """You are a social media manager for Persuasion, a magazine focused on defending liberal democracy.
{guide}
Generate 3 social media posts for {platform} promoting this article.

Platform guidelines: {instructions}

Format your response as JSON:
{{
  "suggestions": ["post 1", "post 2", "post 3"]
}}

Article:
{text}"""


def build_social_prompt(text: str, platform: str, style_guide: Optional[str] = None) -> str:
    if platform not in PLATFORM_INSTRUCTIONS:
        raise ValueError(f"Unknown social platform: {platform}")
    return SOCIAL_TEMPLATE.format(
        guide=_guide_section("Style Guide for Social Media", style_guide),
        platform=platform,
        instructions=PLATFORM_INSTRUCTIONS[platform],
        text=text,
    )


# -----------------------------------------------------------------------------
# Chunked markup tasks (copy-edit, claim-flag)
# -----------------------------------------------------------------------------

COPY_EDIT_TEMPLATE = """{persona}
{guide}
You are copy-editing {position} of a longer article. Review it for:
- Spelling and grammar errors
- Punctuation issues
- Awkward phrasing
- Clarity problems
- Style inconsistencies
- Factual inconsistencies within the text

For each issue you find, mark ONLY the problematic text using this exact format:
[[{tag}: problematic text here]]

Do NOT include the fix in the marked text - just highlight what needs attention.

After the complete section, add a line "{header}" followed by a numbered list of all issues in this format:
1. "problematic text" -> "suggested fix" (reason)

Output the COMPLETE section with issues marked, then the issues list. Do not add any other commentary.

Section to edit:
{text}"""


def build_copy_edit_prompt(text: str, position: str, style_guide: Optional[str] = None) -> str:
    return COPY_EDIT_TEMPLATE.format(
        persona=EDITOR_PERSONA,
        guide=_guide_section("Copy-Editing Style Guide", style_guide),
        position=position,
        tag=MarkerTags.ISSUE,
        header=MarkerTags.ISSUES_HEADER,
        text=text,
    )


CLAIM_FLAG_TEMPLATE = """You are a research editor for Persuasion magazine.
{guide}
You are reviewing {position} of a longer article. Flag every factual claim a fact-checker should confirm before publication:
statistics, dates, quotes and attributions, named laws or policies, allegations, historical and scientific statements.
Skip opinion, rhetorical questions and obvious hyperbole.

Mark ONLY the claim text using this exact format:
[[{tag}: claim text here]]

After the complete section, add a line "{header}" followed by a numbered list in this format:
1. "claim text" - what needs to be verified and where to look

Output the COMPLETE section with claims marked, then the list. Do not add any other commentary.

Section to review:
{text}"""


def build_claim_flag_prompt(text: str, position: str, style_guide: Optional[str] = None) -> str:
    return CLAIM_FLAG_TEMPLATE.format(
        guide=_guide_section("Claim-Flagging Guidelines", style_guide),
        position=position,
        tag=MarkerTags.CLAIM,
        header=MarkerTags.CLAIMS_HEADER,
        text=text,
    )


# -----------------------------------------------------------------------------
# Fact-check
# -----------------------------------------------------------------------------

VERDICT_FORMAT = f"""1. CONFIRMED by the evidence:
   [[{MarkerTags.VERIFIED}: the claim text | the supporting source]]

2. Evidence is MIXED or UNCLEAR:
   [[{MarkerTags.QUESTIONABLE}: the claim text | your concern or what needs verification]]

3. CONTRADICTED by the evidence:
   [[{MarkerTags.INCORRECT}: the claim text | the correction with accurate information]]

4. NO EVIDENCE available (needs a current check):
   [[{MarkerTags.CHECK_CURRENT}: the claim text | what specifically needs to be verified]]"""

FACT_CHECK_TEMPLATE = """You are a fact-checker for Persuasion magazine.
{guide}
Review this article and verify factual claims. Mark each significant claim inline:

{verdicts}

Your knowledge has a cutoff date. Claims about current statistics, current officeholders,
recent events, ongoing situations or recent legislation MUST be marked {check_current}
rather than {verified}, even if they match your training data.

Output the COMPLETE article with claims marked. Not every sentence needs marking - only
factual claims that can be verified. After the article, do not add any additional commentary.

Article to fact-check:
{text}"""


def build_fact_check_prompt(text: str, style_guide: Optional[str] = None) -> str:
    """Single-shot fact-check used when web search is not configured."""
    return FACT_CHECK_TEMPLATE.format(
        guide=_guide_section("Fact-Checking Guidelines", style_guide),
        verdicts=VERDICT_FORMAT,
        check_current=MarkerTags.CHECK_CURRENT,
        verified=MarkerTags.VERIFIED,
        text=text,
    )


CLAIM_EXTRACTION_TEMPLATE = """Today's date is {as_of}. Extract every checkable factual claim from the text below.

Be over-inclusive. Include:
- Numbers, statistics, percentages and dates
- Direct and indirect quotes with their attribution
- Named laws, policies, programs and organizations
- Allegations and accusations
- Characterizations of people or groups that could be checked
- Historical and scientific statements

Exclude pure opinion, rhetorical questions and obvious hyperbole.

For each claim write a short web search query that would find evidence for or against it.

Respond with a JSON array only:
[
  {{"claim": "exact or lightly condensed claim text", "search_query": "query"}}
]

Text:
{text}"""


def build_claim_extraction_prompt(text: str, as_of: date) -> str:
    return CLAIM_EXTRACTION_TEMPLATE.format(as_of=as_of.isoformat(), text=text)


VERIFICATION_TEMPLATE = """You are a fact-checker for Persuasion magazine. Today's date is {as_of}.
{guide}
Below is {position} of an article, followed by web search evidence gathered for claims in the article.
Mark each factual claim in the section inline, using the evidence:

{verdicts}

Rules:
- Base verdicts on the evidence supplied. Cite the source title or URL in {verified} markers.
- Only use {check_current} when no supplied evidence addresses the claim. Never mark a claim
  {check_current} if evidence for it was supplied.
- Output the COMPLETE section with claims marked, and nothing else.

Section:
{text}

Evidence:
{evidence}"""


def build_verification_prompt(
    text: str,
    evidence_block: str,
    position: str,
    as_of: date,
    style_guide: Optional[str] = None,
) -> str:
    return VERIFICATION_TEMPLATE.format(
        as_of=as_of.isoformat(),
        guide=_guide_section("Fact-Checking Guidelines", style_guide),
        position=position,
        verdicts=VERDICT_FORMAT,
        verified=MarkerTags.VERIFIED,
        check_current=MarkerTags.CHECK_CURRENT,
        text=text,
        evidence=evidence_block or "(no evidence was found)",
    )
