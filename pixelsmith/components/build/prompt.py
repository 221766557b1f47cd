import json

BUILDER_SYSTEM_PROMPT = """You are the Universal Builder. Write the final React + TypeScript code for /src/App.tsx.
Output code only: no markdown, no explanations.

Rules:
1. Assets first: when an asset URL is provided apply it through backgroundImage or <img>.
   Do not also set a backgroundColor or gradient on an element that has a background image.
2. Replication: if a manifest contains a dom_tree, build that exact structure recursively.
   Map "type" to HTML tags and "styles" to Tailwind classes. Do not simplify it.
3. Physics: implement the given motion descriptors with Framer Motion.
4. Preserve every data-id attribute so elements stay editable.
5. Icons: render iconSvgPath as an inline <svg>; otherwise use lucide-react.
6. Shaped or textured elements (cloud, stone, wood...): build the silhouette with clip-path or
   SVG clipPath, apply the texture asset with backgroundSize: cover, add depth with shadows,
   and keep the element interactive.
"""

THREE_D_GUIDANCE = """3D mode:
- Use @react-three/fiber with @react-three/drei helpers; wrap the scene in <Canvas> with a <Suspense> fallback
- Use drei <Environment preset="..."> for lighting instead of HDRI files
- Keep HTML overlays outside the Canvas and preserve their data-id attributes
- Animate with useFrame; never allocate objects inside the frame loop
"""

INDEX_TSX = """import React from 'react';
import { createRoot } from 'react-dom/client';
import App from './App';

const root = createRoot(document.getElementById('root')!);
root.render(<React.StrictMode><App /></React.StrictMode>);"""


def build_builder_prompt(
    structure,
    manifests,
    physics,
    strategy,
    current_code,
    instructions: str,
    assets,
    repo_context,
    include_3d: bool,
) -> str:
    sections = [f"### MODE\n{strategy.mode}"]

    if include_3d:
        sections.append(f"### 3D\n{THREE_D_GUIDANCE}")

    if assets:
        asset_lines = "\n".join(f'  - "{name}" -> {url}' for name, url in assets.items())
        sections.append(
            "### ASSETS (use these URLs)\n"
            f"{asset_lines}\n"
            "Apply them via backgroundImage on the matching elements. Combine with clip-path for shaped elements."
        )

    sections.append(f"### INSTRUCTIONS\n{instructions or '(none)'}")

    if structure is not None and not structure.is_empty:
        sections.append(f"### STRUCTURE ({structure.layout_strategy})\n{json.dumps(structure.tree, indent=2)}")
    else:
        manifest_json = json.dumps([m.model_dump(by_alias=True, exclude_none=True) for m in manifests], indent=2)
        sections.append(f"### MANIFESTS (look for dom_tree)\n{manifest_json}")

    if physics is not None and physics.component_motions:
        sections.append(f"### PHYSICS\n{json.dumps(physics.component_motions, indent=2)}")

    if current_code:
        preserve = "Preserve everything not mentioned in the instructions." if strategy.execution_plan.preserve_existing_code else ""
        sections.append(f"### CURRENT CODE\n{preserve}\n{current_code}".rstrip())

    if repo_context is not None:
        repo_lines = []
        if repo_context.style_guide:
            repo_lines.append(f"Style guide:\n{repo_context.style_guide}")
        if repo_context.tech_stack:
            repo_lines.append(f"Tech stack: {', '.join(repo_context.tech_stack)}")
        if repo_context.pattern_library:
            repo_lines.append(f"Reuse these patterns: {', '.join(repo_context.pattern_library)}")
        if repo_lines:
            sections.append("### REPOSITORY\n" + "\n".join(repo_lines))

    return "\n\n".join(sections)
