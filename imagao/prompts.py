from typing import Dict, List

PROMPT_CATEGORIES: Dict[str, List[str]] = {
    "Color & Atmosphere": [
        "Change colors to a cyberpunk neon palette",
        "Apply a vintage sepia filter with film grain",
        "Add a dramatic sunset lighting effect",
        "Change the lighting to a moody rainy night",
        "Convert to black and white high contrast photography",
    ],
    "Art Styles": [
        "Convert this to a minimalist line art sketch",
        "Transform into a detailed oil painting",
        "Style as a 1990s anime screenshot",
        "Make it look like a 16-bit pixel art game",
        "Render as a low-poly 3D model",
    ],
    "Creative Effects": [
        "Make the object look like it is made of translucent glass",
        "Add a futuristic holographic wireframe overlay",
        "Turn the scene into a miniature diorama tilt-shift",
        "Make it look like a sticker with a white border",
        "Apply a psychedelic glitch art effect",
    ],
}


def all_suggestions() -> List[str]:
    return [prompt for prompts in PROMPT_CATEGORIES.values() for prompt in prompts]
