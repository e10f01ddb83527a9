"""Minimal controller used as a smoke test for backend method wiring."""

from planets_admin.rpc.descriptors import returns
from planets_admin.rpc.registry import backend_method


class SampleController:
    @backend_method(allowed=True)
    @returns(type="string")
    def get_sample() -> str:
        return "Hello, world!"
