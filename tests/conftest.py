"""Shared fixtures for the autorefactor test suite."""

from pathlib import Path

import pytest

from autorefactor.config import AutoRefactorConfig

PROFILE_PAGE = """\
import React, { useState } from 'react';
import type { User } from './types';

// Settings for the page
export interface PageProps {
  user: User;
}

type Mode = 'light' | 'dark';

const MAX_ITEMS = 10;
const LABELS = {
  title: "Profile {beta}",
};

function formatName(user: User): string {
  return `${user.first} ${user.last}`;
}

const Avatar = ({ user }: { user: User }) => (
  <img src={user.avatar} alt="" />
);

export default function ProfilePage({ user }: PageProps) {
  const [mode, setMode] = useState<Mode>('light');
  return (
    <div>
      <Avatar user={user} />
      {formatName(user)} {MAX_ITEMS}
    </div>
  );
}
"""


@pytest.fixture
def config():
    """Default configuration, independent of the environment."""
    return AutoRefactorConfig.default()


@pytest.fixture
def profile_page_source():
    return PROFILE_PAGE


@pytest.fixture
def write_source(tmp_path):
    """Write a source file under ``tmp_path`` and return its path."""

    def _write(relative: str, text: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write
