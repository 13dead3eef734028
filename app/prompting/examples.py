"""Fixed prompt suggestions offered next to the prompt field."""

PROMPT_EXAMPLES = (
    "A cat wearing the sunglasses from image 2",
    "Merge all images into a surreal landscape",
    "Image 1 in the artistic style of image 2",
    "Create a pop-art collage from these photos",
)

PROMPT_PLACEHOLDER = (
    "e.g., A cat wearing the sunglasses from image 2, in the art style of image 1."
)


def get_example(index: int) -> str:
    """Return the example at `index`; raises `IndexError` when out of range."""
    if not 0 <= index < len(PROMPT_EXAMPLES):
        raise IndexError(f"No prompt example at position {index}")
    return PROMPT_EXAMPLES[index]
