"""
Content generation: prompt building and reply parsing for city pages.

Flow: ContentRequestBuilder -> GenerationClient.complete -> ContentResponseParser.
The builder and parser are pure; only the client talks to the provider.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from django.conf import settings

from citypages_backend.exceptions import ResponseParseError, ValidationError

logger = logging.getLogger(__name__)

PAGE_TYPE_MAIN_CITY = 'main_city'
PAGE_TYPE_TOPIC = 'topic'
PAGE_TYPE_NEIGHBORHOOD = 'neighborhood'
PAGE_TYPES = (PAGE_TYPE_MAIN_CITY, PAGE_TYPE_TOPIC, PAGE_TYPE_NEIGHBORHOOD)

# (target words, target questions)
PAGE_TYPE_TARGETS = {
    PAGE_TYPE_MAIN_CITY: (8500, 45),
    PAGE_TYPE_TOPIC: (5000, 25),
    PAGE_TYPE_NEIGHBORHOOD: (3500, 18),
}

QUESTIONS_MAX_TOKENS = 8000


def get_page_type_targets(page_type: str):
    """Word and question targets for a page type; unknown types get main-city targets."""
    return PAGE_TYPE_TARGETS.get(page_type, PAGE_TYPE_TARGETS[PAGE_TYPE_MAIN_CITY])


@dataclass
class ContentRequest:
    city: str
    state: str
    page_type: str
    target_word_count: int
    target_question_count: int
    topic: Optional[str] = None
    neighborhood: Optional[str] = None


@dataclass
class GeneratedContent:
    title: str
    meta_description: str
    content: str
    questions: List[Dict[str, Any]] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    word_count: int = 0
    questions_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'metaDescription': self.meta_description,
            'content': self.content,
            'questions': self.questions,
            'keywords': self.keywords,
            'wordCount': self.word_count,
            'questionsCount': self.questions_count,
        }


def count_words(markup: str) -> int:
    """Whitespace-separated tokens after replacing tags with spaces."""
    text = re.sub(r'<[^>]*>', ' ', markup or '')
    return len(text.split())


def _niche() -> str:
    return getattr(settings, 'CONTENT_BUSINESS_NICHE', 'dumpster rental')


class ContentRequestBuilder:
    """Turns a ContentRequest into the prompt text sent to the provider."""

    def build(self, request: ContentRequest) -> str:
        if request.page_type not in PAGE_TYPES:
            raise ValidationError(f"Unknown page type: {request.page_type}")
        return self._preamble(request) + self._page_type_instructions(request)

    def _preamble(self, request: ContentRequest) -> str:
        niche = _niche()
        topic_line = f"TOPIC: {request.topic}" if request.topic else ''
        neighborhood_line = f"NEIGHBORHOOD: {request.neighborhood}" if request.neighborhood else ''

        return f"""You are an expert SEO content writer specializing in local service businesses.
Generate comprehensive, engaging, and SEO-optimized content for a {niche} business.

TARGET LOCATION: {request.city}, {request.state}
PAGE TYPE: {request.page_type}
{topic_line}
{neighborhood_line}
TARGET WORD COUNT: {request.target_word_count} words
TARGET QUESTIONS: {request.target_question_count} questions

CONTENT REQUIREMENTS:
1. Write naturally and conversationally while maintaining professionalism
2. Include specific local references (streets, landmarks, neighborhoods)
3. Answer real customer questions comprehensively
4. Include pricing guidance and permit information
5. Use semantic SEO - naturally include related terms and concepts
6. Structure content with clear headings (H2, H3)
7. Write for featured snippets (direct answers, tables, lists)
8. Include actionable advice and practical tips

RESPONSE FORMAT (JSON):
{{
  "title": "SEO-optimized page title with primary keyword",
  "metaDescription": "Compelling 155-character meta description with CTA",
  "content": "Full HTML content with proper heading structure",
  "questions": [
    {{
      "question": "Question text",
      "answer": "Detailed answer (200-400 words)"
    }}
  ],
  "keywords": ["primary keyword", "semantic keyword 1", "semantic keyword 2"]
}}

"""

    def _page_type_instructions(self, request: ContentRequest) -> str:
        niche = _niche()

        if request.page_type == PAGE_TYPE_MAIN_CITY:
            return f"""
MAIN CITY PAGE FOCUS:
- Primary keyword: "{niche} {request.city}"
- Cover ALL aspects: residential, commercial, construction, roofing
- Include comprehensive pricing guide (by size)
- Detail permit requirements and regulations
- List major neighborhoods served
- Include local dump/transfer station information
- Add section on delivery areas and restrictions
- Include real customer reviews/testimonials structure
- Cover container sizes (10, 20, 30, 40 yard) in detail

EXAMPLE QUESTIONS TO ANSWER:
- How much does {niche} cost in {request.city}?
- What size do I need for my project?
- Do I need a permit in {request.city}?
- How long can I keep the container?
- What can't I put in it?
- Same-day delivery options
- Weight limits and overage charges
"""

        if request.page_type == PAGE_TYPE_TOPIC:
            topic = request.topic or ''
            return f"""
TOPIC PAGE FOCUS ({topic}):
- Target keyword: "{topic} {niche} {request.city}"
- Deep dive into this specific use case
- Include project-specific advice
- Detail typical project timelines
- List what materials are commonly disposed
- Provide size recommendations for this project type
- Include cost breakdowns specific to {topic}
- Add safety considerations
- Include local regulations specific to {topic} projects

EXAMPLE QUESTIONS FOR {topic.upper()}:
- What size for a {topic} project?
- How much does {topic} {niche} cost?
- What can I throw away from {topic}?
- {topic} {niche} tips
- Best practices for {topic} waste disposal
"""

        neighborhood = request.neighborhood or ''
        return f"""
NEIGHBORHOOD PAGE FOCUS ({neighborhood}):
- Target keyword: "{niche} {neighborhood}"
- Hyper-local content with specific street names
- Mention local landmarks near {neighborhood}
- Include {neighborhood}-specific delivery considerations
- Detail permit requirements for {neighborhood}
- Discuss HOA considerations if applicable
- Include parking/placement tips for {neighborhood} streets
- Mention nearby dump locations
- Include {neighborhood} demographics context

EXAMPLE QUESTIONS FOR {neighborhood.upper()}:
- Delivery to {neighborhood}
- Parking requirements in {neighborhood}
- Best container sizes for {neighborhood} homes
- {neighborhood} permit information
- HOA rules in {neighborhood}
"""


def build_questions_request(city: str, state: str, topic: str, count: int = 10) -> str:
    """Prompt for a standalone batch of FAQ entries about one topic."""
    return f"""Generate {count} specific, detailed questions and answers about "{topic}" for {_niche()} in {city}, {state}.

Questions should be:
1. Actual questions customers ask
2. Specific to {city} when possible
3. SEO-friendly (searchable)
4. Cover different aspects of {topic}

Answers should be:
1. 200-400 words each
2. Informative and actionable
3. Include specific local details
4. Naturally include related keywords

Return as JSON array:
[
  {{
    "question": "Question text?",
    "answer": "Detailed answer..."
  }}
]"""


class ContentResponseParser:
    """Extracts the JSON payload from a provider reply."""

    REQUIRED_FIELDS = ('title', 'metaDescription', 'content')

    def parse(self, text: str) -> GeneratedContent:
        text = text or ''
        start = text.find('{')
        end = text.rfind('}')
        if start == -1 or end < start:
            raise ResponseParseError("Could not find JSON in response")

        try:
            payload = json.loads(text[start:end + 1])
        except json.JSONDecodeError as e:
            logger.error(f"Error parsing AI response: {e}")
            raise ResponseParseError("Failed to parse content generation response") from e

        if not isinstance(payload, dict):
            raise ResponseParseError("Content generation response is not a JSON object")

        missing = [f for f in self.REQUIRED_FIELDS if not isinstance(payload.get(f), str)]
        if missing:
            raise ResponseParseError(f"Content generation response missing fields: {', '.join(missing)}")

        questions = payload.get('questions') or []
        keywords = payload.get('keywords') or []
        if not isinstance(questions, list) or not isinstance(keywords, list):
            raise ResponseParseError("questions and keywords must be lists")

        return GeneratedContent(
            title=payload['title'],
            meta_description=payload['metaDescription'],
            content=payload['content'],
            questions=questions,
            keywords=keywords,
            word_count=count_words(payload['content']),
            questions_count=len(questions),
        )


def parse_questions(text: str) -> List[Dict[str, str]]:
    """First JSON array of {question, answer} objects in the reply, or []."""
    match = re.search(r'\[[\s\S]*\]', text or '')
    if not match:
        return []
    try:
        items = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ResponseParseError("Failed to parse questions response") from e
    return [
        {'question': item['question'], 'answer': item['answer']}
        for item in items
        if isinstance(item, dict) and 'question' in item and 'answer' in item
    ]


class ContentGenerationService:
    """Builder, client and parser wired together."""

    def __init__(self, generation_client, builder: ContentRequestBuilder = None,
                 parser: ContentResponseParser = None):
        self.client = generation_client
        self.builder = builder or ContentRequestBuilder()
        self.parser = parser or ContentResponseParser()

    def generate(self, request: ContentRequest) -> GeneratedContent:
        prompt = self.builder.build(request)
        text = self.client.complete(prompt)
        return self.parser.parse(text)

    def generate_questions(self, city: str, state: str, topic: str, count: int = 10) -> List[Dict[str, str]]:
        prompt = build_questions_request(city, state, topic, count)
        text = self.client.complete(prompt, max_tokens=QUESTIONS_MAX_TOKENS)
        return parse_questions(text)
