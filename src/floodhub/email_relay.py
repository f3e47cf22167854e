"""Citizen report and partner inquiry submission through the EmailJS REST relay."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import requests

from floodhub.auth import AuthSession
from floodhub.recommend import SOLUTION_CATEGORIES

logger = logging.getLogger(__name__)

EMAILJS_API_URL = os.environ.get('EMAILJS_API_URL', 'https://api.emailjs.com/api/v1.0/email/send')
EMAILJS_SERVICE_ID = os.environ.get('EMAILJS_SERVICE_ID', '')
EMAILJS_PUBLIC_KEY = os.environ.get('EMAILJS_PUBLIC_KEY', '')
EMAILJS_REPORT_TEMPLATE_ID = os.environ.get('EMAILJS_REPORT_TEMPLATE_ID', '')
EMAILJS_PARTNER_TEMPLATE_ID = os.environ.get('EMAILJS_PARTNER_TEMPLATE_ID', '')
EMAILJS_TIMEOUT = 15

REPORT_TYPE_TEXT = {'flood': 'Flooding', 'drain': 'Drainage problem'}
POC_AVAILABILITY_TEXT = {'available': 'Available', 'negotiable': 'Needs discussion'}


def send_template(template_id: str, template_params: Dict[str, str]) -> bool:
    """Submit one template to the relay. Delivery itself is not confirmed."""
    payload = {
        'service_id': EMAILJS_SERVICE_ID,
        'template_id': template_id,
        'user_id': EMAILJS_PUBLIC_KEY,
        'template_params': template_params,
    }
    try:
        response = requests.post(EMAILJS_API_URL, json=payload, timeout=EMAILJS_TIMEOUT)
    except requests.RequestException as exc:
        logger.error(f"Email relay request failed: {exc}")
        return False
    if not response.ok:
        logger.error(f"Email relay rejected template {template_id}: HTTP {response.status_code} {response.text}")
        return False
    return True


@dataclass
class ReportForm:
    type: str  # 'flood' | 'drain' | 'etc'
    description: str
    address: str = ''
    found_address: str = ''
    position: Optional[Tuple[float, float]] = None
    photo_name: str = ''
    contact: str = ''

    @property
    def coordinates(self) -> str:
        if self.position is None:
            return 'not set'
        lat, lng = self.position
        return f"{lat:.6f}, {lng:.6f}"


def build_report_params(form: ReportForm) -> Dict[str, str]:
    type_text = REPORT_TYPE_TEXT.get(form.type, 'Other')
    return {
        'subject': f"[Hazard report] {type_text} - {form.address or 'unknown location'}",
        'report_type': type_text,
        'address': form.address or 'not entered',
        'address_detail': form.found_address or 'not found',
        'coordinates': form.coordinates,
        'description': form.description,
        'photo_name': form.photo_name or 'none',
        'contact': form.contact or 'not entered',
    }


def submit_citizen_report(form: ReportForm, session: Optional[AuthSession] = None) -> bool:
    """Send the report and, for a signed-in user, record it on their profile.

    The return value is the relay outcome; a ``False`` should be shown as a
    retry prompt. Points are credited locally whatever the relay said.
    """
    params = build_report_params(form)
    sent = send_template(EMAILJS_REPORT_TEMPLATE_ID, params)
    if session is not None and session.user is not None:
        session.add_report(
            type=form.type,
            address=params['address'],
            address_detail=params['address_detail'],
            coordinates=params['coordinates'],
            description=form.description,
            contact=params['contact'],
        )
    return sent


@dataclass
class PartnerInquiry:
    company_name: str
    contact_name: str
    email: str
    phone: str = ''
    service_region: str = 'All of Gyeonggi-do'
    categories: List[str] = field(default_factory=list)
    certifications: str = ''
    case_link: str = ''
    poc_availability: str = 'available'
    message: str = ''


def build_partner_inquiry_params(inquiry: PartnerInquiry) -> Dict[str, str]:
    names = {c['id']: c['name'] for c in SOLUTION_CATEGORIES}
    categories = ', '.join(names[c] for c in inquiry.categories if c in names)
    return {
        'subject': f"[Partner registration] {inquiry.company_name}",
        'company_name': inquiry.company_name,
        'contact_name': inquiry.contact_name,
        'email': inquiry.email,
        'phone': inquiry.phone,
        'service_region': inquiry.service_region,
        'categories': categories or 'not selected',
        'certifications': inquiry.certifications or 'none',
        'case_link': inquiry.case_link or 'none',
        'poc_availability': POC_AVAILABILITY_TEXT.get(inquiry.poc_availability, 'Not available'),
        'message': inquiry.message or 'none',
    }


def submit_partner_inquiry(inquiry: PartnerInquiry) -> bool:
    return send_template(EMAILJS_PARTNER_TEMPLATE_ID, build_partner_inquiry_params(inquiry))
