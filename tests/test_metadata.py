import pathlib
import sys
from datetime import datetime

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from unittest import mock

from portalscan import metadata
from portalscan.metadata import (
    extract_description,
    extract_details,
    extract_emails,
    extract_phones,
    extract_social_links,
    extract_title,
)

PAGE = """
<html><head>
  <title>  Acme &amp; Sons
     IT Services </title>
  <meta property="og:description" content="OG fallback">
  <meta name="description" content="Managed IT for small business">
  <style>.a { color: red }</style>
  <script>var phone = "555-000-1111";</script>
</head><body>
  <p>Call us at (415) 555-2671 or +1 415-555-2671 or 212.555.0199.</p>
  <a href="tel:+1-646-555-0101">Sales</a>
  <p>Email: Info@Acme.com, support@acme.com, info@acme.com</p>
  <img src="logo@2x.png">
  <a href="https://www.facebook.com/sharer/sharer.php?u=acme">Share</a>
  <a href="https://www.facebook.com/acmeit/">Facebook</a>
  <a href="https://x.com/acmeit">X</a>
  <a href="https://www.linkedin.com/company/acme-it/">LinkedIn</a>
  <a href="https://twitter.com/intent/tweet?text=hi">Tweet</a>
</body></html>
"""


def test_title_and_description():
    assert extract_title(PAGE) == 'Acme & Sons IT Services'
    assert extract_description(PAGE) == 'Managed IT for small business'
    assert extract_description('<meta property="og:description" content="Only OG">') == 'Only OG'
    assert extract_title('<p>no title</p>') == ''


def test_emails_deduped_and_assets_skipped():
    assert extract_emails(PAGE) == ['info@acme.com', 'support@acme.com']
    many = ' '.join(f'user{i}@example.com' for i in range(10))
    assert len(extract_emails(many)) == 5


def test_phones_prefer_tel_links_and_dedupe():
    phones = extract_phones(PAGE)
    assert phones[0] == '+1-646-555-0101'
    assert '(415) 555-2671' in phones
    assert '212.555.0199' in phones
    # the +1 variant of an already seen number is dropped
    assert len([p for p in phones if '2671' in p]) == 1
    # numbers inside scripts are not visible text
    assert not any('1111' in p for p in phones)


def test_social_links_skip_share_urls():
    links = extract_social_links(PAGE)
    assert links == {
        'facebook': 'https://www.facebook.com/acmeit',
        'twitter': 'https://x.com/acmeit',
        'linkedin': 'https://www.linkedin.com/company/acme-it',
    }


def test_extract_details_shape():
    stack = [{'name': 'WordPress', 'category': 'CMS'}]
    details = extract_details(PAGE, tech_stack=stack, scraper='fetch')
    assert set(details) == {'title', 'description', 'emails', 'phones', 'socialLinks', 'techStack',
                            'scrapedAt', 'scraper'}
    assert details['techStack'] == stack
    assert details['scraper'] == 'fetch'
    assert datetime.fromisoformat(details['scrapedAt']).tzinfo is not None


def test_extract_details_never_raises():
    with mock.patch.object(metadata, 'extract_phones', side_effect=RuntimeError('boom')):
        details = extract_details(PAGE, scraper='fetch')
    assert details['title'] == 'Acme & Sons IT Services'
    assert details['phones'] == []
    assert details['socialLinks'] == {}
    empty = extract_details('', scraper='fetch')
    assert empty['title'] == '' and empty['emails'] == [] and empty['techStack'] == []


def test_profiles_named_share_are_kept():
    html = ('<a href="https://www.facebook.com/sharer.php?u=x">s</a>'
            '<a href="https://www.facebook.com/sharethrough">fb</a>'
            '<a href="https://twitter.com/share?url=x">t</a>'
            '<a href="https://twitter.com/shareaholic">tw</a>'
            '<a href="https://www.linkedin.com/company/sharepoint-experts/">li</a>')
    assert extract_social_links(html) == {
        'facebook': 'https://www.facebook.com/sharethrough',
        'twitter': 'https://twitter.com/shareaholic',
        'linkedin': 'https://www.linkedin.com/company/sharepoint-experts',
    }
