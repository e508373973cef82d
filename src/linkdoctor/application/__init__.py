"""Application services: probes, diagnostics, retry control and access repair."""
