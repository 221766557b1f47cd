"""
Identifier helpers for request tracking
"""
import random
import time
import uuid


def generate_correlation_id() -> str:
    """
    Generate a numeric correlation ID for request tracking

    Format: 8-digit number (e.g., '48273945')
    """
    return str(random.randint(10000000, 99999999))


def generate_prefixed_id(prefix: str) -> str:
    """
    Generate an id such as 'cmd_1718000000000_a1b2c3' for commands, swarms and goals.
    """
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"
