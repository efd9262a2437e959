"""
Description:
This module contains precompiled regex patterns used to post-process model output:
stripping the interview completion marker and locating JSON payloads inside
free-form text.

Dependencies:
- re: Python's built-in regular expression module for pattern matching.

"""

import re

COMPLETION_MARKER = "[INTERVIEW_COMPLETE]"

# Compile regex patterns once for better performance
REGEX_PATTERNS = {
    'completion_marker': re.compile(re.escape(COMPLETION_MARKER)),
    'fenced_block': re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE),
    'control_chars': re.compile(r'[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]'),
}
