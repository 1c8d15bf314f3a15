"""
Domain Gate Tests

Email-domain allow-list, its in-memory cache, and the Cognito
Pre sign-up trigger that wraps them.
"""
import pytest
from unittest.mock import MagicMock, patch

from domain_cache import CACHE_TTL_MS, DomainCache
from domain_gate import (
    ALLOWED_DOMAINS_DOC_PATH,
    email_domain,
    get_allowed_domains,
    restrict_signup_by_domain,
)
from errors import ErrorKind, GateError


def make_fetch(domains=('university.edu', 'college.ac.uk')):
    """Document reader returning a fixed allow-list document."""
    return MagicMock(return_value={'PK': 'DOC#config', 'SK': 'emailDomains', 'domains': list(domains)})


# =============================================================================
# Cache resolution
# =============================================================================
class TestGetAllowedDomains:
    """Tests for reading and caching the allow-list document."""

    def test_reads_the_allow_list_document(self, clock):
        fetch = make_fetch()
        cache = DomainCache(clock=clock)

        domains = get_allowed_domains(cache=cache, fetch=fetch)

        assert domains == ['university.edu', 'college.ac.uk']
        fetch.assert_called_once_with(ALLOWED_DOMAINS_DOC_PATH)
        assert ALLOWED_DOMAINS_DOC_PATH == 'config/emailDomains'

    def test_entries_are_lowercased_and_trimmed(self, clock):
        fetch = make_fetch(['  University.EDU ', 'College.ac.uk\n'])

        domains = get_allowed_domains(cache=DomainCache(clock=clock), fetch=fetch)

        assert domains == ['university.edu', 'college.ac.uk']

    def test_second_read_within_ttl_is_served_from_cache(self, clock):
        fetch = make_fetch()
        cache = DomainCache(clock=clock)

        first = get_allowed_domains(cache=cache, fetch=fetch)
        clock.advance(CACHE_TTL_MS - 1)
        second = get_allowed_domains(cache=cache, fetch=fetch)

        assert first == second
        fetch.assert_called_once()

    def test_read_after_ttl_goes_back_to_the_store(self, clock):
        fetch = make_fetch()
        cache = DomainCache(clock=clock)

        get_allowed_domains(cache=cache, fetch=fetch)
        clock.advance(CACHE_TTL_MS)
        fetch.return_value = {'domains': ['new.edu']}
        domains = get_allowed_domains(cache=cache, fetch=fetch)

        assert domains == ['new.edu']
        assert fetch.call_count == 2
        assert cache.fetched_at_ms == clock.now

    def test_ttl_is_one_minute(self):
        assert CACHE_TTL_MS == 60_000

    def test_empty_list_is_cached(self, clock):
        fetch = make_fetch([])
        cache = DomainCache(clock=clock)

        assert get_allowed_domains(cache=cache, fetch=fetch) == []
        assert get_allowed_domains(cache=cache, fetch=fetch) == []
        fetch.assert_called_once()

    @pytest.mark.parametrize('doc', [
        None,
        {},
        {'domains': 'university.edu'},
        {'domains': ['university.edu', 42]},
        {'domains': None},
    ])
    def test_missing_or_invalid_document_fails_closed(self, clock, doc):
        cache = DomainCache(clock=clock)

        with pytest.raises(GateError) as exc_info:
            get_allowed_domains(cache=cache, fetch=MagicMock(return_value=doc))

        assert exc_info.value.kind == ErrorKind.FAILED_PRECONDITION
        assert cache.value is None

    def test_failed_refresh_does_not_extend_the_old_entry(self, clock):
        fetch = make_fetch()
        cache = DomainCache(clock=clock)
        get_allowed_domains(cache=cache, fetch=fetch)

        clock.advance(CACHE_TTL_MS + 1)
        fetch.return_value = {'domains': 'broken'}
        with pytest.raises(GateError):
            get_allowed_domains(cache=cache, fetch=fetch)

        # Still expired, so the next call reads again
        assert cache.get() is None

    def test_defaults_to_document_store(self, fresh_default_cache):
        with patch('domain_gate.db.get_document', return_value={'domains': ['university.edu']}) as get_doc:
            assert get_allowed_domains() == ['university.edu']

        get_doc.assert_called_once_with('config/emailDomains')
        assert fresh_default_cache.value == ['university.edu']


# =============================================================================
# Domain extraction
# =============================================================================
class TestEmailDomain:

    def test_lowercases_domain(self):
        assert email_domain('Jane@UNIVERSITY.EDU') == 'university.edu'

    def test_uses_last_at_sign(self):
        assert email_domain('"odd@name"@university.edu') == 'university.edu'

    def test_malformed_addresses(self):
        assert email_domain('no-at-sign') is None
        assert email_domain('user@') is None


# =============================================================================
# Signup decision
# =============================================================================
class TestRestrictSignupByDomain:
    """Tests for accepting or rejecting a signup by email domain."""

    def test_allowed_domain_accepted(self, clock):
        result = restrict_signup_by_domain(
            'student@university.edu', cache=DomainCache(clock=clock), fetch=make_fetch())

        assert result is None

    def test_case_insensitive_domain_check(self, clock):
        fetch = make_fetch(['university.edu'])

        restrict_signup_by_domain('Jane@UNIVERSITY.EDU', cache=DomainCache(clock=clock), fetch=fetch)

    def test_disallowed_domain_rejected(self, clock):
        with pytest.raises(GateError) as exc_info:
            restrict_signup_by_domain(
                'someone@gmail.com', cache=DomainCache(clock=clock), fetch=make_fetch())

        assert exc_info.value.kind == ErrorKind.PERMISSION_DENIED
        assert '"gmail.com"' in str(exc_info.value)

    def test_subdomain_is_not_the_same_domain(self, clock):
        with pytest.raises(GateError) as exc_info:
            restrict_signup_by_domain(
                'student@mail.university.edu', cache=DomainCache(clock=clock), fetch=make_fetch())

        assert exc_info.value.kind == ErrorKind.PERMISSION_DENIED

    def test_malformed_email_rejected_as_unknown(self, clock):
        with pytest.raises(GateError) as exc_info:
            restrict_signup_by_domain('not-an-email', cache=DomainCache(clock=clock), fetch=make_fetch())

        assert exc_info.value.kind == ErrorKind.PERMISSION_DENIED
        assert '"unknown"' in exc_info.value.message

    @pytest.mark.parametrize('email', [None, ''])
    def test_empty_email_rejected(self, clock, email):
        fetch = make_fetch()

        with pytest.raises(GateError) as exc_info:
            restrict_signup_by_domain(email, cache=DomainCache(clock=clock), fetch=fetch)

        assert exc_info.value.kind == ErrorKind.INVALID_ARGUMENT
        fetch.assert_not_called()

    def test_bad_configuration_is_not_a_user_error(self, clock):
        with pytest.raises(GateError) as exc_info:
            restrict_signup_by_domain(
                'student@university.edu', cache=DomainCache(clock=clock), fetch=MagicMock(return_value=None))

        assert exc_info.value.kind == ErrorKind.FAILED_PRECONDITION


# =============================================================================
# Cognito Pre sign-up trigger
# =============================================================================
class TestPreSignUpLambda:
    """Tests for the Cognito trigger wrapping the domain gate."""

    @pytest.fixture
    def mock_store(self, fresh_default_cache):
        with patch('domain_gate.db.get_document') as get_doc:
            get_doc.return_value = {'domains': ['university.edu']}
            yield get_doc

    def test_allowed_domain_returns_event(self, mock_store):
        event = {
            'request': {
                'userAttributes': {'email': 'Jane@UNIVERSITY.EDU'}
            },
            'response': {}
        }

        from pre_signup import handler
        result = handler(event, None)

        assert result is event
        assert result['response'] == {}

    def test_disallowed_domain_aborts_signup(self, mock_store):
        event = {
            'request': {
                'userAttributes': {'email': 'user@hacker.com'}
            },
            'response': {}
        }

        from pre_signup import handler
        with pytest.raises(GateError) as exc_info:
            handler(event, None)

        assert exc_info.value.kind == ErrorKind.PERMISSION_DENIED
        assert 'hacker.com' in str(exc_info.value)

    def test_missing_email_rejected(self, mock_store):
        event = {
            'request': {
                'userAttributes': {}
            },
            'response': {}
        }

        from pre_signup import handler
        with pytest.raises(GateError) as exc_info:
            handler(event, None)

        assert exc_info.value.kind == ErrorKind.INVALID_ARGUMENT
        mock_store.assert_not_called()

    def test_cache_shared_across_invocations(self, mock_store):
        from pre_signup import handler
        for email in ('a@university.edu', 'b@university.edu', 'c@university.edu'):
            handler({'request': {'userAttributes': {'email': email}}, 'response': {}}, None)

        mock_store.assert_called_once()
