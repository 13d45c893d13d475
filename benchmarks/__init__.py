"""
Benchmark suite for bencode2json transcoding performance.

Compares streaming transcoding against serializing an already-decoded
value with:
- Python standard library json
- orjson (C-optimized)
- ujson (ultra-fast JSON)

Measures throughput and memory usage across different document shapes.
"""
