#!/usr/bin/env python3
"""Simple example of using Chat Plaintext"""

from chat_plaintext import ChatTextProcessor

# Create processor
processor = ChatTextProcessor()

# A chat reply with math and Markdown
text = """
The famous equation $E = mc^2$ was discovered by **Einstein**.

The quadratic formula is:
$$x = \\frac{-b \\pm \\sqrt{b^2 - 4ac}}{2a}$$

This is used to solve equations like $ax^2 + bx + c = 0$.
"""

# Process the text
print("Processing text...")
result = processor.process_text(text)

# Show results
print(result.text)
print(f"\nLaTeX applied: {result.latex_applied}")
print(f"Markdown applied: {result.markdown_applied}")

# Save to file
processor.export_results(result, "my_message.json")
print("\nResults saved to my_message.json")
