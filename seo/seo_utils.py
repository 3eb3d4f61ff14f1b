"""
SEO helpers: slugs, schema.org JSON-LD fragments and meta tags.

Everything here is a pure function over plain values. Schema builders omit
optional fields instead of emitting nulls.
"""
import html
import json
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

SCHEMA_CONTEXT = 'https://schema.org'


def generate_slug(*parts: str) -> str:
    """
    Join parts into a URL-safe slug.

    generate_slug("New York!", "NY") -> "new-york-ny"
    """
    slug = '-'.join(p for p in parts if p).lower()
    slug = re.sub(r'[^a-z0-9-]', '-', slug)
    slug = re.sub(r'-+', '-', slug)
    return slug.strip('-')


def _ld_json(schema: dict) -> str:
    return f'<script type="application/ld+json">{json.dumps(schema, indent=2, ensure_ascii=False)}</script>'


# ─────────────────────────────────────────────────────────────
# Structured data
# ─────────────────────────────────────────────────────────────

@dataclass
class PostalAddress:
    address_locality: str
    address_region: str
    street_address: str = ''
    postal_code: str = ''
    address_country: str = 'US'


@dataclass
class GeoPoint:
    latitude: float
    longitude: float


@dataclass
class LocalBusinessSchema:
    name: str
    description: str
    address: PostalAddress
    url: str
    geo: Optional[GeoPoint] = None
    telephone: Optional[str] = None
    price_range: Optional[str] = None
    area_served: Optional[List[str]] = None


@dataclass
class FAQItem:
    question: str
    answer: str


@dataclass
class BreadcrumbItem:
    name: str
    url: str


@dataclass
class OrganizationSchema:
    name: str
    url: str
    logo: Optional[str] = None
    same_as: List[str] = field(default_factory=list)
    telephone: Optional[str] = None
    email: Optional[str] = None


def generate_local_business_schema(params: LocalBusinessSchema) -> str:
    address = {'@type': 'PostalAddress'}
    for key, value in (
        ('streetAddress', params.address.street_address),
        ('addressLocality', params.address.address_locality),
        ('addressRegion', params.address.address_region),
        ('postalCode', params.address.postal_code),
        ('addressCountry', params.address.address_country),
    ):
        if value:
            address[key] = value

    schema = {
        '@context': SCHEMA_CONTEXT,
        '@type': 'LocalBusiness',
        'name': params.name,
        'description': params.description,
        'address': address,
        'url': params.url,
    }
    if params.telephone:
        schema['telephone'] = params.telephone
    if params.price_range:
        schema['priceRange'] = params.price_range
    if params.geo:
        schema['geo'] = {
            '@type': 'GeoCoordinates',
            'latitude': params.geo.latitude,
            'longitude': params.geo.longitude,
        }
    if params.area_served:
        schema['areaServed'] = [{'@type': 'City', 'name': area} for area in params.area_served]
    return _ld_json(schema)


def generate_faq_schema(faqs: Iterable[FAQItem]) -> str:
    schema = {
        '@context': SCHEMA_CONTEXT,
        '@type': 'FAQPage',
        'mainEntity': [
            {
                '@type': 'Question',
                'name': faq.question,
                'acceptedAnswer': {'@type': 'Answer', 'text': faq.answer},
            }
            for faq in faqs
        ],
    }
    return _ld_json(schema)


def generate_breadcrumb_schema(items: Iterable[BreadcrumbItem]) -> str:
    schema = {
        '@context': SCHEMA_CONTEXT,
        '@type': 'BreadcrumbList',
        'itemListElement': [
            {'@type': 'ListItem', 'position': index, 'name': item.name, 'item': item.url}
            for index, item in enumerate(items, start=1)
        ],
    }
    return _ld_json(schema)


def generate_organization_schema(params: OrganizationSchema) -> str:
    schema = {
        '@context': SCHEMA_CONTEXT,
        '@type': 'Organization',
        'name': params.name,
        'url': params.url,
    }
    if params.logo:
        schema['logo'] = params.logo
    if params.same_as:
        schema['sameAs'] = list(params.same_as)
    if params.telephone:
        schema['telephone'] = params.telephone
    if params.email:
        schema['email'] = params.email
    return _ld_json(schema)


# ─────────────────────────────────────────────────────────────
# Meta tags
# ─────────────────────────────────────────────────────────────

META_DESCRIPTION_TEMPLATES = {
    'main_city': "Professional dumpster rental in {city}, {state}. Same-day delivery, competitive pricing, all sizes available. Get your free quote today!",
    'residential': "Residential dumpster rental {city}, {state}. Perfect for home cleanouts, renovations & yard waste. Easy booking, fast delivery. Call now!",
    'commercial': "Commercial dumpster services {city}, {state}. Reliable waste management for businesses. Multiple sizes, flexible scheduling. Free quote!",
    'construction': "Construction dumpster rental {city}, {state}. Heavy-duty containers for job sites. Quick delivery, competitive rates. Order today!",
    'roofing': "Roofing dumpster rental {city}, {state}. Specialized containers for shingle disposal. Fast service, transparent pricing. Get started!",
}


def generate_meta_description(city: str, state: str, page_type: str, topic: Optional[str] = None) -> str:
    """Template meta description; topic pages use a topic template when one exists."""
    key = 'main_city'
    if page_type == 'topic' and topic and topic.lower() in META_DESCRIPTION_TEMPLATES:
        key = topic.lower()
    return META_DESCRIPTION_TEMPLATES[key].format(city=city, state=state)


def generate_open_graph_tags(title: str, description: str, url: str,
                             image: Optional[str] = None, og_type: str = 'website') -> str:
    attr = lambda value: html.escape(value, quote=True)  # noqa: E731
    tags = [
        f'<meta property="og:title" content="{attr(title)}" />',
        f'<meta property="og:description" content="{attr(description)}" />',
        f'<meta property="og:url" content="{attr(url)}" />',
        f'<meta property="og:type" content="{attr(og_type)}" />',
    ]
    if image:
        tags.append(f'<meta property="og:image" content="{attr(image)}" />')
    tags += [
        '<meta name="twitter:card" content="summary_large_image" />',
        f'<meta name="twitter:title" content="{attr(title)}" />',
        f'<meta name="twitter:description" content="{attr(description)}" />',
    ]
    if image:
        tags.append(f'<meta name="twitter:image" content="{attr(image)}" />')
    return '\n'.join(tags)


def generate_canonical_tag(url: str) -> str:
    return f'<link rel="canonical" href="{html.escape(url, quote=True)}" />'


def generate_image_alt(subject: str, city: str, state: str, context: Optional[str] = None) -> str:
    parts = [subject, city, state]
    if context:
        parts.append(context)
    return ' - '.join(parts)


SEMANTIC_KEYWORDS = [
    'rent a dumpster', 'waste container', 'trash removal', 'junk removal',
    'debris removal', 'construction waste', 'residential dumpster',
    'commercial dumpster', 'dumpster sizes', 'dumpster prices',
]


def extract_keywords(city: str, state: str, limit: int = 20) -> List[str]:
    """Baseline keyword list for a city: head terms first, then semantic variants."""
    base = [
        f'dumpster rental {city}',
        f'{city} dumpster rental',
        f'dumpster {city} {state}',
        f'roll off dumpster {city}',
        f'waste management {city}',
    ]
    return (base + [f'{kw} {city}' for kw in SEMANTIC_KEYWORDS])[:limit]


def suggest_internal_links(current: Dict[str, str], available: Iterable[Dict[str, str]]) -> List[Dict[str, str]]:
    """
    Suggest links to other pages of the same city with a different page type.
    Dicts carry 'city', 'page_type' and, for candidates, 'title' and 'url'.
    """
    suggestions = []
    for page in available:
        if page.get('url') and page.get('url') == current.get('url'):
            continue
        if page['city'] == current['city'] and page['page_type'] != current['page_type']:
            suggestions.append({
                'anchor': page['title'],
                'url': page['url'],
                'context': f"Related page in {page['city']}",
            })
    return suggestions


def _readability_level(score: float) -> str:
    if score >= 90:
        return 'Very Easy'
    if score >= 80:
        return 'Easy'
    if score >= 70:
        return 'Fairly Easy'
    if score >= 60:
        return 'Standard'
    if score >= 50:
        return 'Fairly Difficult'
    if score >= 30:
        return 'Difficult'
    return 'Very Difficult'


def calculate_readability_score(content: str) -> Dict[str, object]:
    """Simplified Flesch reading ease; syllables approximated by vowel groups."""
    text = re.sub(r'<[^>]*>', ' ', content).strip()
    sentences = len([s for s in re.split(r'[.!?]+', text) if s.strip()])
    words = text.split()
    if not sentences or not words:
        return {'score': 0, 'level': 'Unknown'}

    syllables = sum(max(1, len(re.findall(r'[aeiouy]+', w.lower()))) for w in words)
    score = 206.835 - 1.015 * (len(words) / sentences) - 84.6 * (syllables / len(words))
    return {'score': round(score), 'level': _readability_level(score)}


CHANGEFREQ_VALUES = ('always', 'hourly', 'daily', 'weekly', 'monthly', 'yearly', 'never')


def generate_sitemap_entry(url: str, lastmod: str, changefreq: str = 'weekly', priority: float = 0.5) -> str:
    if changefreq not in CHANGEFREQ_VALUES:
        changefreq = 'weekly'
    return (
        '  <url>\n'
        f'    <loc>{html.escape(url)}</loc>\n'
        f'    <lastmod>{lastmod}</lastmod>\n'
        f'    <changefreq>{changefreq}</changefreq>\n'
        f'    <priority>{priority:.1f}</priority>\n'
        '  </url>'
    )
