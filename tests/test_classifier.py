import pathlib
import sys

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portalscan.classifier import build_text, classify, detect_tech_stack

STRIPE_PAGE = '<html><head><script src="https://js.stripe.com/v3/"></script></head><body>Pay</body></html>'


def test_stripe_only(registry):
    res = classify(STRIPE_PAGE, 'https://a.com/', registry)
    assert res.payment_portals == ['Stripe']
    assert res.psa_portals == []
    assert res.tech_stack == []


def test_multiple_vendors_follow_registry_order(registry):
    html = ('<script src="https://www.paypalobjects.com/api/checkout.js"></script>'
            '<a href="https://help.zendesk.com">Help</a>'
            '<script src="https://js.stripe.com/v3"></script>'
            '<a href="https://portal.connectwise.com">Client portal</a>')
    res = classify(html, None, registry)
    assert res.payment_portals == ['Stripe', 'PayPal']
    assert res.psa_portals == ['ConnectWise', 'Zendesk']


def test_no_duplicates_when_many_patterns_hit(registry):
    html = 'js.stripe.com checkout.stripe.com stripe.com Stripe(' * 3
    res = classify(html, None, registry)
    assert res.payment_portals == ['Stripe']


def test_case_insensitive_and_idempotent(registry):
    html = '<DIV>Powered by WOOCOMMERCE and AutoTask</DIV>'
    first = classify(html, None, registry)
    second = classify(html, None, registry)
    assert first == second
    assert first.payment_portals == ['WooCommerce']
    assert first.psa_portals == ['Autotask']


def test_final_url_folding(registry):
    html = '<html><body>Welcome to our store</body></html>'
    folded = classify(html, 'https://acme.myshopify.com/', registry)
    assert folded.payment_portals == ['Shopify Payments']
    plain = classify(html, 'https://acme.myshopify.com/', registry, fold_url=False)
    assert plain.payment_portals == []


def test_build_text():
    assert build_text('<B>Hi</B>', 'HTTPS://X.COM') == '<b>hi</b>\nhttps://x.com'
    assert build_text('<B>Hi</B>', 'HTTPS://X.COM', fold_url=False) == '<b>hi</b>'
    assert build_text(None) == ''


def test_atera_does_not_match_inside_words(registry):
    res = classify('<p>lateral thinking, literature and cafeteria</p>', None, registry)
    assert 'Atera' not in res.psa_portals
    res = classify('<p>We support Atera customers</p>', None, registry)
    assert res.psa_portals == ['Atera']


def test_tech_stack(registry):
    html = ('<link rel="stylesheet" href="/wp-content/themes/x/style.css">'
            '<script src="/wp-includes/js/jquery/jquery.min.js"></script>'
            '<script async src="https://www.googletagmanager.com/gtag/js?id=G-1"></script>')
    stack = detect_tech_stack(html.lower(), registry)
    names = [t['name'] for t in stack]
    assert names == ['WordPress', 'jQuery', 'Google Tag Manager']
    assert stack[0] == {'name': 'WordPress', 'category': 'CMS'}
    res = classify(html, None, registry, with_tech=True)
    assert [t['name'] for t in res.tech_stack] == names
