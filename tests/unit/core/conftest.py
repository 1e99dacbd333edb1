"""Shared fixtures for core unit tests"""

from datetime import datetime

import pytest


SAMPLE_MD = """\
---
title: Daily Log
tags: [memos]
---

# Journal

Intro paragraph.

## [x] 2025-10-11 16:08 ^aaa-11111

First section body.

## [ ] Second ^bbb-22222 [collapsed:: true]

- item one
- item two
"""

PLAIN_MD = """\
Para A

Para B

Para C
"""


@pytest.fixture(name="sample_md")
def sample_md_fixture():
    return SAMPLE_MD


@pytest.fixture(name="plain_md")
def plain_md_fixture():
    return PLAIN_MD


@pytest.fixture(name="now")
def now_fixture():
    """Fixed clock for timestamped headings."""
    return datetime(2025, 10, 11, 16, 8, 42)
