"""
Request layer: origin fetch, cache writes and the Lambda event adapter.
"""
