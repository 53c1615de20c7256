"""PARSEC benchmark harness: run paper suites in VMs and plot thread-scaling results."""

VERSION = "v1.0.0"
