"""
Pytest configuration and fixtures for branch compare tests.
"""

import json
from pathlib import Path
from tempfile import TemporaryDirectory

import httpx
import pytest
import pytest_asyncio

from branch_compare.api import RDBClient
from branch_compare.packages import PackageIndex

BASE_URL = "https://rdb.example.test/api"


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for tests."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sisyphus_packages():
    """Provide raw package records for the target branch."""
    return [
        {
            "name": "gcc",
            "epoch": 0,
            "version": "11.2",
            "release": "1",
            "arch": "x86_64",
            "disttag": "sisyphus+300000.100.1.1",
            "buildtime": 1650000000,
            "source": "gcc",
        },
        {
            "name": "bash",
            "epoch": 0,
            "version": "5.1.16",
            "release": "alt1",
            "arch": "x86_64",
            "disttag": "",
            "buildtime": 1650000000,
            "source": "bash",
        },
        {
            "name": "openssl",
            "epoch": 1,
            "version": "3.0.7",
            "release": "alt1",
            "arch": "x86_64",
            "disttag": "",
            "buildtime": 1650000000,
            "source": "openssl",
        },
        {
            "name": "rust",
            "epoch": 0,
            "version": "1.70",
            "release": "alt1",
            "arch": "x86_64",
            "disttag": "",
            "buildtime": 1650000000,
            "source": "rust",
        },
        {
            "name": "gcc",
            "epoch": 0,
            "version": "11.2",
            "release": "1",
            "arch": "aarch64",
            "disttag": "",
            "buildtime": 1650000000,
            "source": "gcc",
        },
        {
            "name": "pkgA",
            "epoch": 0,
            "version": "1.0",
            "release": "alt1",
            "arch": "noarch",
            "disttag": "",
            "buildtime": 1650000000,
            "source": "pkgA",
        },
        {
            "name": "pkgB",
            "epoch": 0,
            "version": "2.0",
            "release": "alt1",
            "arch": "noarch",
            "disttag": "",
            "buildtime": 1650000000,
            "source": "pkgB",
        },
    ]


@pytest.fixture
def p10_packages():
    """Provide raw package records for the secondary branch."""
    return [
        {
            "name": "gcc",
            "epoch": 0,
            "version": "10.0",
            "release": "1",
            "arch": "x86_64",
            "disttag": "p10+280000.100.1.1",
            "buildtime": 1640000000,
            "source": "gcc",
        },
        {
            "name": "bash",
            "epoch": 0,
            "version": "5.1.16",
            "release": "alt1",  # Same as target
            "arch": "x86_64",
            "disttag": "",
            "buildtime": 1640000000,
            "source": "bash",
        },
        {
            "name": "openssl",
            "epoch": 2,  # Epoch bump makes p10 newer
            "version": "1.1.1",
            "release": "alt1",
            "arch": "x86_64",
            "disttag": "",
            "buildtime": 1640000000,
            "source": "openssl",
        },
        {
            "name": "python2",
            "epoch": 0,
            "version": "2.7.18",
            "release": "alt5",
            "arch": "x86_64",
            "disttag": "",
            "buildtime": 1640000000,
            "source": "python2",
        },
        {
            "name": "gcc",
            "epoch": 0,
            "version": "10.0",
            "release": "1",
            "arch": "aarch64",
            "disttag": "",
            "buildtime": 1640000000,
            "source": "gcc",
        },
        {
            "name": "kernel-image",
            "epoch": 0,
            "version": "5.10.100",
            "release": "alt1",
            "arch": "i586",
            "disttag": "",
            "buildtime": 1640000000,
            "source": "kernel-image",
        },
    ]


@pytest.fixture
def sisyphus_index(sisyphus_packages):
    """Provide a built index of the target branch."""
    return PackageIndex.build(sisyphus_packages)


@pytest.fixture
def p10_index(p10_packages):
    """Provide a built index of the secondary branch."""
    return PackageIndex.build(p10_packages)


@pytest.fixture
def branch_archs():
    """Provide architecture lists per branch."""
    return {
        "sisyphus": ["aarch64", "noarch", "x86_64"],
        "p10": ["aarch64", "i586", "noarch", "x86_64"],
    }


@pytest.fixture
def mock_api(sisyphus_packages, p10_packages, branch_archs):
    """
    Provide a fake package database.

    Returns a dict with the httpx transport, the list of requests it
    received, and the branch data it serves (tests may edit it before
    making requests).
    """
    state = {
        "packages": {"sisyphus": sisyphus_packages, "p10": p10_packages},
        "archs": branch_archs,
        "requests": [],
        "fail": {},
    }

    def handler(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        path = request.url.path

        if path.endswith("/site/all_pkgset_archs"):
            branch = request.url.params.get("branch")
            if branch not in state["archs"]:
                return httpx.Response(400, json={
                    "message": "Input data validation error",
                    "errors": {"branch": f"unknown package set name : {branch}"},
                })
            return httpx.Response(200, json={
                "length": len(state["archs"][branch]),
                "archs": [{"arch": a, "count": 1} for a in state["archs"][branch]],
            })

        prefix = "/api/export/branch_binary_packages/"
        if path.startswith(prefix):
            branch = path[len(prefix):]
            if branch in state["fail"]:
                return httpx.Response(state["fail"][branch], text="upstream failure")
            if branch not in state["packages"]:
                return httpx.Response(400, json={
                    "message": "Input data validation error",
                    "errors": {"branch": f"unknown package set name : {branch}"},
                })
            arch = request.url.params.get("arch")
            packages = [
                p for p in state["packages"][branch]
                if arch is None or p["arch"] == arch
            ]
            return httpx.Response(200, content=json.dumps({
                "request_args": {"arch": arch},
                "length": len(packages),
                "packages": packages,
            }), headers={"Content-Type": "application/json"})

        return httpx.Response(404, json={"message": "not found"})

    state["transport"] = httpx.MockTransport(handler)
    return state


@pytest_asyncio.fixture
async def rdb_client(mock_api):
    """Provide an API client backed by the fake package database."""
    async with httpx.AsyncClient(transport=mock_api["transport"]) as http:
        yield RDBClient(BASE_URL, client=http)
