from stringbank.analysis.analyzer import analyze, content_address, normalize

__all__ = ["analyze", "content_address", "normalize"]
