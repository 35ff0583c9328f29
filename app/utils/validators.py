"""Custom validators and normalizers"""

import re
from email_validator import validate_email, EmailNotValidError

# Discount codes are exactly five uppercase letters or digits
DISCOUNT_CODE_PATTERN = re.compile(r"^[A-Z0-9]{5}$")

def validate_email_address(email: str) -> str:
    """Validate and normalize email"""
    email = email.strip().lower()

    try:
        validation = validate_email(email, check_deliverability=False)
        return validation.normalized
    except EmailNotValidError as e:
        raise ValueError(str(e))

def normalize_discount_code(code: str) -> str:
    """Upper-case and strip a discount code as typed by a shopper"""
    return code.strip().upper()

def validate_discount_code(code: str) -> str:
    """Normalize and check the discount code format"""
    code = normalize_discount_code(code)
    if not DISCOUNT_CODE_PATTERN.match(code):
        raise ValueError("Discount code must be exactly 5 uppercase letters or numbers")
    return code
