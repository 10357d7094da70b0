"""
Example showing how to build requests against the GitHub REST API.

This is a small example; it performs real network requests when run.
Set QUIVER_BASE_URL=https://api.github.com/ to load the client from the
environment instead of the hard-coded base URL.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List

from quiver.client import Client
from quiver.config import ClientConfig
from quiver.errors import QuiverError


@dataclass
class IssueQuery:
    state: str = field(default="open", metadata={"url": "state"})
    labels: List[str] = field(default_factory=list, metadata={"url": "labels,comma,omitempty"})
    per_page: int = field(default=0, metadata={"url": "per_page,omitempty"})


@dataclass
class APIError:
    message: str = ""
    documentation_url: str = ""


def build_client() -> Client:
    if os.getenv("QUIVER_BASE_URL"):
        config = ClientConfig.from_env(headers={"Accept": "application/vnd.github+json"})
        return Client.from_config(config)
    return Client("https://api.github.com/").set_header("Accept", "application/vnd.github+json")


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)

    with build_client() as client:
        issues: List[Dict[str, Any]] = []
        failure = APIError()
        try:
            resp = (
                client.get("repos/encode/httpx/issues")
                .add_query_struct(IssueQuery(labels=["bug"], per_page=5))
                .decode(issues, failure)
            )
        except QuiverError as exc:
            print("Request failed:", exc)
        else:
            print("Status:", resp.status_code)
            if resp.is_success:
                for issue in issues:
                    print(f"#{issue['number']}: {issue['title']}")
            else:
                print("Error:", failure.message)
