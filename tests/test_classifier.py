"""Tests for per-event classification.

Covers:
- first visit vs. repeat visit (same IP / new IP)
- rapid revisit boundary (60s inclusive)
- access after expiry / after burn
- non-browser User-Agent detection
- idempotence and in-place annotation
"""

from __future__ import annotations

from nullvault.analysis.classifier import RAPID_REVISIT_SECS, classify_event, classify_events
from nullvault.schemas.analysis import AccessEvent, Label, SecretTimeline

CHROME = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/125.0 Safari/537.36"


def _event(ts: int, ip: str | None = "203.0.113.1", ua: str | None = CHROME) -> AccessEvent:
    return AccessEvent(accessed_at=ts, ip_address=ip, user_agent=ua)


NO_LIFECYCLE = SecretTimeline()


class TestVisitClassification:
    """first_visit / repeat_visit_* labels."""

    def test_single_event_is_first_visit(self) -> None:
        events = classify_events([_event(100)], NO_LIFECYCLE)
        assert events[0].labels == [Label.FIRST_VISIT]

    def test_newest_first_history(self) -> None:
        """Older entries sit at higher indexes."""
        events = [_event(200, "A"), _event(150, "A"), _event(100, "B")]
        classify_events(events, NO_LIFECYCLE)

        assert events[2].labels == [Label.FIRST_VISIT]
        assert events[1].labels == [Label.FIRST_VISIT, Label.REPEAT_VISIT_NEW_IP]
        assert events[0].labels == [Label.REPEAT_VISIT_SAME_IP, Label.RAPID_REVISIT]

    def test_first_visit_never_repeat_same_ip(self) -> None:
        events = [_event(500, "C"), _event(400, "B"), _event(300, "A")]
        classify_events(events, NO_LIFECYCLE)
        for e in events:
            assert Label.FIRST_VISIT in e.labels
            assert Label.REPEAT_VISIT_SAME_IP not in e.labels

    def test_repeat_same_ip_without_rapid(self) -> None:
        events = [_event(1000, "A"), _event(100, "A")]
        classify_events(events, NO_LIFECYCLE)
        assert events[0].labels == [Label.REPEAT_VISIT_SAME_IP]

    def test_missing_ip_has_no_same_ip_history(self) -> None:
        events = [_event(200, None), _event(150, None)]
        classify_events(events, NO_LIFECYCLE)
        assert events[0].labels == [Label.FIRST_VISIT]
        assert events[1].labels == [Label.FIRST_VISIT]

    def test_missing_ip_after_known_ip_is_new_ip(self) -> None:
        events = [_event(200, None), _event(150, "A")]
        classify_events(events, NO_LIFECYCLE)
        assert events[0].labels == [Label.FIRST_VISIT, Label.REPEAT_VISIT_NEW_IP]

    def test_newer_events_do_not_count_as_history(self) -> None:
        events = [_event(200, "B"), _event(100, "A")]
        classify_events(events, NO_LIFECYCLE)
        assert events[1].labels == [Label.FIRST_VISIT]


class TestRapidRevisit:
    """Boundary is inclusive at RAPID_REVISIT_SECS."""

    def _labels_for_gap(self, gap: int) -> list[Label]:
        events = [_event(1000 + gap, "A"), _event(1000, "A")]
        return classify_events(events, NO_LIFECYCLE)[0].labels

    def test_45_seconds_is_rapid(self) -> None:
        assert Label.RAPID_REVISIT in self._labels_for_gap(45)

    def test_exactly_60_seconds_is_rapid(self) -> None:
        assert RAPID_REVISIT_SECS == 60
        assert Label.RAPID_REVISIT in self._labels_for_gap(60)

    def test_61_seconds_is_not_rapid(self) -> None:
        labels = self._labels_for_gap(61)
        assert Label.RAPID_REVISIT not in labels
        assert Label.REPEAT_VISIT_SAME_IP in labels

    def test_any_prior_same_ip_within_window(self) -> None:
        """Only one of several earlier same-IP visits needs to be close."""
        events = [_event(1030, "A"), _event(1000, "A"), _event(10, "A")]
        classify_events(events, NO_LIFECYCLE)
        assert Label.RAPID_REVISIT in events[0].labels


class TestLifecycleLabels:
    def test_expired_link_access(self) -> None:
        secret = SecretTimeline(expires_at=150)
        events = [_event(200, "B"), _event(150, "A"), _event(100, "A")]
        classify_events(events, secret)
        assert Label.EXPIRED_LINK_ACCESS in events[0].labels
        # Strictly after expiry only
        assert Label.EXPIRED_LINK_ACCESS not in events[1].labels
        assert Label.EXPIRED_LINK_ACCESS not in events[2].labels

    def test_burned_link_access(self) -> None:
        secret = SecretTimeline(burned_at=100)
        events = [_event(101), _event(100)]
        classify_events(events, secret)
        assert Label.BURNED_LINK_ACCESS in events[0].labels
        assert Label.BURNED_LINK_ACCESS not in events[1].labels

    def test_no_timestamps_no_lifecycle_labels(self) -> None:
        events = classify_events([_event(10**10)], NO_LIFECYCLE)
        assert Label.EXPIRED_LINK_ACCESS not in events[0].labels
        assert Label.BURNED_LINK_ACCESS not in events[0].labels


class TestUserAgentLabel:
    def test_curl_is_non_browser(self) -> None:
        events = classify_events([_event(100, ua="curl/8.4.0")], NO_LIFECYCLE)
        assert Label.NON_BROWSER_USER_AGENT in events[0].labels

    def test_browser_prefix_is_case_insensitive(self) -> None:
        events = classify_events([_event(100, ua="mozilla/5.0 (X11)")], NO_LIFECYCLE)
        assert Label.NON_BROWSER_USER_AGENT not in events[0].labels

    def test_missing_or_empty_ua_not_labelled(self) -> None:
        events = classify_events([_event(200, ua=None), _event(100, ua="")], NO_LIFECYCLE)
        for e in events:
            assert Label.NON_BROWSER_USER_AGENT not in e.labels

    def test_link_preview_bot(self) -> None:
        events = classify_events([_event(100, ua="TelegramBot (like TwitterBot)")], NO_LIFECYCLE)
        assert Label.NON_BROWSER_USER_AGENT in events[0].labels


class TestClassifyEvents:
    def test_returns_same_list(self) -> None:
        events = [_event(100)]
        assert classify_events(events, NO_LIFECYCLE) is events

    def test_idempotent(self) -> None:
        events = [_event(300, "A", "curl/8"), _event(270, "A"), _event(100, "B")]
        secret = SecretTimeline(expires_at=250)
        first = [list(e.labels) for e in classify_events(events, secret)]
        second = [list(e.labels) for e in classify_events(events, secret)]
        assert first == second
        assert all(len(set(labels)) == len(labels) for labels in second)

    def test_reclassify_after_reset(self) -> None:
        events = [_event(200, "A"), _event(150, "A")]
        first = [list(e.labels) for e in classify_events(events, NO_LIFECYCLE)]
        for e in events:
            e.labels = []
        second = [list(e.labels) for e in classify_events(events, NO_LIFECYCLE)]
        assert first == second

    def test_empty_list(self) -> None:
        assert classify_events([], NO_LIFECYCLE) == []

    def test_classify_event_direct(self) -> None:
        events = [_event(130, "A"), _event(100, "A")]
        assert classify_event(events[0], 0, events, NO_LIFECYCLE) == [
            Label.REPEAT_VISIT_SAME_IP,
            Label.RAPID_REVISIT,
        ]
