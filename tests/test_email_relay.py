import pytest
import requests

from floodhub import email_relay


class FakeResponse:
    def __init__(self, status_code=200, text='OK'):
        self.status_code = status_code
        self.text = text

    @property
    def ok(self):
        return self.status_code < 400


@pytest.fixture
def posts(monkeypatch):
    sent = []

    def fake_post(url, json=None, timeout=None):
        sent.append({'url': url, 'json': json, 'timeout': timeout})
        return FakeResponse()

    monkeypatch.setattr(email_relay.requests, 'post', fake_post)
    return sent


class RecordingSession:
    def __init__(self, user):
        self.user = user
        self.calls = []

    def add_report(self, **kwargs):
        self.calls.append(kwargs)
        return True


def test_report_params_fill_placeholders():
    params = email_relay.build_report_params(email_relay.ReportForm(type='etc', description='Broken cover'))
    assert params == {
        'subject': '[Hazard report] Other - unknown location',
        'report_type': 'Other',
        'address': 'not entered',
        'address_detail': 'not found',
        'coordinates': 'not set',
        'description': 'Broken cover',
        'photo_name': 'none',
        'contact': 'not entered',
    }


def test_report_params_with_position():
    form = email_relay.ReportForm(
        type='flood',
        description='Road flooded',
        address='수원시 팔달구',
        position=(37.2636, 127.0286),
        photo_name='road.jpg',
    )
    params = email_relay.build_report_params(form)
    assert params['subject'] == '[Hazard report] Flooding - 수원시 팔달구'
    assert params['coordinates'] == '37.263600, 127.028600'
    assert params['photo_name'] == 'road.jpg'


def test_send_template_payload(posts, monkeypatch):
    monkeypatch.setattr(email_relay, 'EMAILJS_SERVICE_ID', 'service_x')
    monkeypatch.setattr(email_relay, 'EMAILJS_PUBLIC_KEY', 'public_y')
    assert email_relay.send_template('template_z', {'a': 'b'}) is True
    assert posts[0]['json'] == {
        'service_id': 'service_x',
        'template_id': 'template_z',
        'user_id': 'public_y',
        'template_params': {'a': 'b'},
    }
    assert posts[0]['timeout'] == email_relay.EMAILJS_TIMEOUT


def test_send_template_failures_return_false(monkeypatch):
    monkeypatch.setattr(email_relay.requests, 'post', lambda *a, **k: FakeResponse(400, 'bad template'))
    assert email_relay.send_template('t', {}) is False

    def unreachable(*args, **kwargs):
        raise requests.ConnectionError('offline')

    monkeypatch.setattr(email_relay.requests, 'post', unreachable)
    assert email_relay.send_template('t', {}) is False


def test_signed_in_report_is_recorded_even_if_relay_fails(monkeypatch):
    monkeypatch.setattr(email_relay.requests, 'post', lambda *a, **k: FakeResponse(500, 'down'))
    session = RecordingSession(user=object())
    form = email_relay.ReportForm(type='drain', description='Clogged', contact='010-0000-0000')

    assert email_relay.submit_citizen_report(form, session) is False
    assert session.calls == [{
        'type': 'drain',
        'address': 'not entered',
        'address_detail': 'not found',
        'coordinates': 'not set',
        'description': 'Clogged',
        'contact': '010-0000-0000',
    }]


def test_anonymous_report_is_only_relayed(posts):
    session = RecordingSession(user=None)
    assert email_relay.submit_citizen_report(email_relay.ReportForm(type='flood', description='x'), session) is True
    assert session.calls == []
    assert len(posts) == 1


def test_partner_inquiry_params():
    inquiry = email_relay.PartnerInquiry(
        company_name='Green Infra',
        contact_name='Lee',
        email='lee@example.com',
        categories=['infiltration', 'smart', 'bogus'],
        poc_availability='negotiable',
    )
    params = email_relay.build_partner_inquiry_params(inquiry)
    assert params['subject'] == '[Partner registration] Green Infra'
    assert params['categories'] == 'permeable, sensor'
    assert params['poc_availability'] == 'Needs discussion'
    assert params['certifications'] == 'none'

    bare = email_relay.build_partner_inquiry_params(
        email_relay.PartnerInquiry(company_name='X', contact_name='Y', email='z@example.com', poc_availability='no')
    )
    assert bare['categories'] == 'not selected'
    assert bare['poc_availability'] == 'Not available'


def test_submit_partner_inquiry_uses_partner_template(posts, monkeypatch):
    monkeypatch.setattr(email_relay, 'EMAILJS_PARTNER_TEMPLATE_ID', 'template_partner')
    inquiry = email_relay.PartnerInquiry(company_name='X', contact_name='Y', email='z@example.com')
    assert email_relay.submit_partner_inquiry(inquiry) is True
    assert posts[0]['json']['template_id'] == 'template_partner'
