import time
import unittest

from domainsignals.extraction.signals import classify, extract_emails, extract_page_links
from domainsignals.processing.domain_types import SignalConfig


class TestSignalExtraction(unittest.TestCase):
    def test_contact_email_and_link(self):
        body = "Contact us at help@example.com or visit https://x.com/contact-us"
        r = classify(body, SignalConfig())
        self.assertEqual(r.emails, ("help@example.com",))
        self.assertEqual(r.contact_page_links, ("https://x.com/contact-us",))
        self.assertEqual(r.faq_page_links, ())
        self.assertEqual(r.frameworks, ())
        self.assertEqual(r.help_desks, ())
        self.assertTrue(r.matched)

    def test_help_desk_match_is_case_insensitive(self):
        r = classify("Powered by Zendesk", SignalConfig(help_desks=("zendesk",)))
        self.assertEqual(r.help_desks, ("zendesk",))
        self.assertTrue(r.matched)

    def test_empty_body_matches_nothing(self):
        r = classify("", SignalConfig(frameworks=("react",), help_desks=("zendesk",)))
        self.assertFalse(r.matched)
        self.assertEqual(r.to_dict()["emails"], [])
        self.assertEqual(
            (r.frameworks, r.help_desks, r.emails, r.contact_page_links, r.faq_page_links),
            ((), (), (), (), ()),
        )

    def test_no_signals_in_plain_text(self):
        r = classify("Just a plain page about gardening.", SignalConfig(frameworks=("react", "vue")))
        self.assertFalse(r.matched)

    def test_repeated_signal_reported_once(self):
        body = "<script src='react.js'></script> REACT react ReAcT"
        r = classify(body, SignalConfig(frameworks=("React", "Angular")))
        self.assertEqual(r.frameworks, ("React",))

    def test_signals_keep_configured_order(self):
        body = "built with vue and next.js and react"
        r = classify(body, SignalConfig(frameworks=("react", "vue", "svelte")))
        self.assertEqual(r.frameworks, ("react", "vue"))

    def test_blank_signal_is_ignored(self):
        r = classify("anything", SignalConfig(frameworks=("", "  ")))
        self.assertEqual(r.frameworks, ())
        self.assertFalse(r.matched)

    def test_emails_keep_case_and_first_seen_order(self):
        body = "Write Sales@Example.COM, then info@shop.io, then Sales@Example.COM again."
        r = classify(body, SignalConfig())
        self.assertEqual(r.emails, ("Sales@Example.COM", "info@shop.io"))

    def test_email_requires_alphabetic_tld(self):
        r = classify("user@host.1 and user@host.c", SignalConfig())
        self.assertEqual(r.emails, ())

    def test_link_token_stops_at_quotes_and_whitespace(self):
        body = '<a href="https://shop.com/pages/Contact?x=1">Contact</a> <a href=\'http://a.io/help/FAQ\'>faq</a>'
        r = classify(body, SignalConfig())
        self.assertEqual(r.contact_page_links, ("https://shop.com/pages/Contact?x=1",))
        self.assertEqual(r.faq_page_links, ("http://a.io/help/FAQ",))

    def test_link_without_marker_is_not_reported(self):
        r = classify("see https://example.org/about-us for details", SignalConfig())
        self.assertEqual(r.contact_page_links, ())
        self.assertEqual(r.faq_page_links, ())
        self.assertFalse(r.matched)

    def test_same_url_can_be_contact_and_faq(self):
        url = "https://x.com/faq-and-contact"
        r = classify(f"go to {url}", SignalConfig())
        self.assertEqual(r.contact_page_links, (url,))
        self.assertEqual(r.faq_page_links, (url,))

    def test_duplicate_links_collapse(self):
        body = "https://x.com/contact https://x.com/contact https://y.com/contact"
        r = classify(body, SignalConfig())
        self.assertEqual(r.contact_page_links, ("https://x.com/contact", "https://y.com/contact"))

    def test_classify_is_deterministic(self):
        cfg = SignalConfig(frameworks=("wordpress",), help_desks=("intercom",))
        body = "WordPress site, Intercom widget, mail a@b.co, https://q.com/faq"
        self.assertEqual(classify(body, cfg), classify(body, cfg))

    def test_binary_body_does_not_crash(self):
        r = classify(b"\xff\xfe\x00garbage Zendesk \x80", SignalConfig(help_desks=("zendesk",)))
        self.assertEqual(r.help_desks, ("zendesk",))

    def test_non_text_body_is_empty(self):
        r = classify(None, SignalConfig(frameworks=("x",)))
        self.assertFalse(r.matched)

    def test_large_body(self):
        chunk = "lorem ipsum dolor sit amet " * 40
        body = (chunk + "\n") * 2000 + " contact: ops@big.example.com https://big.example.com/contact"
        r = classify(body, SignalConfig(frameworks=("ipsum",)))
        self.assertEqual(r.frameworks, ("ipsum",))
        self.assertEqual(r.emails, ("ops@big.example.com",))
        self.assertEqual(r.contact_page_links, ("https://big.example.com/contact",))

    def test_to_dict_shape(self):
        r = classify("Powered by Zendesk", SignalConfig(help_desks=("zendesk",)))
        self.assertEqual(
            r.to_dict(),
            {
                "matched": True,
                "frameworks": [],
                "helpDesks": ["zendesk"],
                "emails": [],
                "contactPageLinks": [],
                "faqPageLinks": [],
            },
        )


class TestEmailShapes(unittest.TestCase):
    def test_second_at_starts_a_new_local_part(self):
        self.assertEqual(extract_emails("a@b@c.de"), ("b@c.de",))

    def test_domain_stops_at_last_alphabetic_suffix(self):
        self.assertEqual(extract_emails("x@a.bc.1"), ("x@a.bc",))

    def test_local_part_punctuation(self):
        self.assertEqual(extract_emails("..%x+@Mail.Example.ORG!"), ("..%x+@Mail.Example.ORG",))

    def test_adjacent_addresses_do_not_overlap(self):
        self.assertEqual(extract_emails("a@b.cd@e.fg"), ("a@b.cd",))

    def test_no_tld(self):
        self.assertEqual(extract_emails("foo@bar and @baz.com"), ())


class TestLinkTokens(unittest.TestCase):
    def test_embedded_url_keeps_whole_token(self):
        body = "go http://HOST/x?next=http://y/contact now"
        self.assertEqual(extract_page_links(body, "contact"), ("http://HOST/x?next=http://y/contact",))

    def test_marker_in_host(self):
        self.assertEqual(extract_page_links("HTTPS://Contact.example", "contact"), ("HTTPS://Contact.example",))


class TestUnbrokenBodies(unittest.TestCase):
    def assertFast(self, body, limit=5.0):
        started = time.perf_counter()
        classify(body, SignalConfig(frameworks=("react",), help_desks=("zendesk",)))
        self.assertLess(time.perf_counter() - started, limit)

    def test_long_local_run(self):
        self.assertFast("a" * 1_000_000)

    def test_long_url_token(self):
        self.assertFast("http://a" * 125_000)

    def test_many_dangling_ats(self):
        self.assertFast("a@" * 500_000)

    def test_long_domain_run(self):
        self.assertFast("x@" + "b." * 500_000)

    def test_long_run_still_finds_trailing_address(self):
        r = classify("a" * 1_000_000 + "@example.com")
        self.assertEqual(len(r.emails), 1)
        self.assertTrue(r.emails[0].endswith("@example.com"))


class TestSignalConfig(unittest.TestCase):
    def test_rejects_non_positive_batch_size(self):
        with self.assertRaises(ValueError):
            SignalConfig(batch_size=0)

    def test_lists_become_tuples(self):
        cfg = SignalConfig(frameworks=["a"], help_desks=["b"])
        self.assertEqual(cfg.frameworks, ("a",))
        self.assertEqual(cfg.help_desks, ("b",))


if __name__ == "__main__":
    unittest.main()
