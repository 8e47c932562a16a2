#!/usr/bin/env python3
"""
Demo script for Chat Plaintext
"""

from pathlib import Path
from chat_plaintext import ChatTextProcessor, ProcessConfig, TableImageConfig

# Write table images next to the script
config = ProcessConfig(table_image=TableImageConfig(base_dir=Path("demo_tables")))
processor = ChatTextProcessor(config)

# Sample chat reply
sample_message = r"""
# Introduction to Calculus

The derivative of a function $f(x)$ at point $a$ is defined as:

$$f'(a) = \lim_{h \to 0} \frac{f(a+h) - f(a)}{h}$$

## Piecewise functions

$|x| = \begin{cases} x & x \geq 0 \\ -x & x < 0 \end{cases}$

\begin{align}
(a+b)^2 &= a^2 + 2ab + b^2 \\
\sum_{i=1}^{n} i &= \frac{n(n+1)}{2}
\end{align}

## Checklist
- [x] Read the chapter
- [ ] Solve *all* exercises

```python
print("$not math$")
```

| 장르 | 제목 |
|---|---|
| 판타지 | 반지의 제왕 |
| 판타지 | 나니아 연대기 |
| SF | 듄 |
"""

table = """
| Symbol | Meaning |
|:---:|---|
| `\\pi` | **pi** ≈ 3.14159 |
| `\\sum` | summation<br>over *i* |
"""

print("Converting sample message...")
print("=" * 60)

result = processor.process_text(sample_message)
print(result.text)

print("=" * 60)
print(f"Processing completed in {result.processing_time:.3f} seconds")
if result.errors:
    print(f"Errors: {result.errors}")

# Rasterize a table
image_path = processor.render_table(table)
print(f"\nTable image written to: {image_path}")

# Export results
output_file = Path("demo_output.json")
if processor.export_results(result, output_file):
    print(f"\nResults exported to: {output_file}")

print("\nDemo completed!")
