#!/usr/bin/env python3
"""
Quick Start Guide for the Selective XML Extractor.

This example walks through the three levels of the API: the one-call
extract() function, a configured SelectiveExtractor with a DocumentWriter,
and the token level for callers that bring their own token stream.
"""

import sys
import tempfile
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from selective_xml_extractor import (
    DocumentWriter,
    ExtractorConfig,
    SelectiveExtractor,
    extract,
    reference_set,
)
from selective_xml_extractor.tokenization import XMLTokenizer

JOBS_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<jobs>
  <job id="a1">
    <title>Platform Engineer</title>
    <job_reference>12345</job_reference>
  </job>
  <job id="b2">
    <title>Data Analyst</title>
    <job_reference>67890</job_reference>
  </job>
  <job id="c3">
    <title>Support Lead</title>
    <job_reference>24680</job_reference>
  </job>
</jobs>
"""


def quick_start_example():
    """Quick start example showing basic usage."""

    print("🚀 QUICK START - Selective XML Extractor")
    print("=" * 45)

    # Step 1: One call, plain arguments
    print("\n📄 Step 1: Simple extraction")
    print("-" * 30)

    references = reference_set(["12345", " 24680 ", ""])
    result = extract(JOBS_FEED, references, "job", "job_reference")

    print(f"✅ Status: {result.status.name}")
    print(f"📊 Spans considered: {result.spans_considered}")
    print(f"🎯 Spans matched: {result.spans_matched}")
    for fragment in result.fragments:
        print(f"  {fragment.splitlines()[0]} ...")

    # Step 2: Configured extractor plus chunked output
    print("\n⚙️  Step 2: Configured extraction with chunked output")
    print("-" * 30)

    with tempfile.TemporaryDirectory() as output_dir:
        config = ExtractorConfig().override(
            extraction__parent_name="job",
            output__output_dir=output_dir,
            output__chunk_size=2,
            output__root_tag="export",
        )
        extractor = SelectiveExtractor(config.extraction, config.tokenizer)
        result = extractor.extract(JOBS_FEED, frozenset())

        paths = DocumentWriter(config.output).write(result)
        for path in paths:
            print(f"📁 {path.name}: {path.read_text(encoding='utf-8').count('<job ')} entries")

    # Step 3: Token level
    print("\n🧩 Step 3: Token stream")
    print("-" * 30)

    tokenizer = XMLTokenizer()
    tokens = tokenizer.tokenize(JOBS_FEED)
    print(f"🔢 Tokens: {len(tokens)}")

    result = extractor.extract_tokens(tokens[:12], frozenset())
    print(f"✂️  Truncated stream matched {result.spans_matched} span(s), "
          f"unterminated span: {result.unterminated_span}")
    for diagnostic in result.diagnostics:
        print(f"  - {diagnostic.severity.name}: {diagnostic.message}")

    print(f"\n🎉 Quick start complete!")


def main():
    """Main function."""
    try:
        quick_start_example()

        print(f"\n✅ All examples completed successfully!")
        return 0

    except Exception as e:
        print(f"\n❌ Example failed: {e}")
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
