import traceback
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import pandas as pd
from PIL import Image, ImageDraw, ImageFont
from tqdm import tqdm

from shapegrammar.core import export_image, export_svg, render_program
from shapegrammar.language.errors import GrammarError
from shapegrammar.language.expansion import ExpandSettings

VARIABLE_PREFIX = "var_"
RENDER_COLUMNS = ["render_filepath", "svg_filepath", "n_nodes", "n_culled", "n_passes"]


class Task(ABC):
    """An abstract base class for generating sets of variations of a program.

    Subclasses decide which (program, seed, constant overrides) combinations
    make up the set; this class expands and renders every row, saves the
    images with their metadata, and draws a labelled grid summary.
    """

    def __init__(self, task_name: str, data_dir: str = "data", settings: Optional[ExpandSettings] = None,
                 canvas_dim: int = 512, grid_columns: int = 4, **kwargs):
        """Initializes the Task instance, setting up paths and directories."""
        self.task_name = task_name
        self.data_dir = Path(data_dir)
        self.settings = settings or ExpandSettings()
        self.canvas_dim = canvas_dim
        self.grid_columns = grid_columns
        self._setup_paths()
        self._create_directories()

    def _setup_paths(self):
        """Initializes all necessary directory and file paths."""
        task_root = self.data_dir / self.task_name
        self.images_dir = task_root / "images"
        self.summary_dir = task_root / "summaries"
        self.metadata_path = task_root / "metadata.csv"

    def _create_directories(self):
        """Ensures that all required directories exist, creating them if necessary."""
        for path in [self.images_dir, self.summary_dir]:
            path.mkdir(parents=True, exist_ok=True)

    @abstractmethod
    def generate_programs(self) -> pd.DataFrame:
        """Generates rows with `program_string`, `seed` and optional `var_<name>` columns."""
        pass

    # --- Main Orchestration ---
    def run(self) -> pd.DataFrame:
        """
        Executes the full pipeline. If metadata.csv exists, load existing data.
        Otherwise, generate and render all variations and draw the summary grid.
        """
        if self.metadata_path.exists():
            print(f"✅ Found existing metadata at '{self.metadata_path}'. Skipping generation.")
            return pd.read_csv(self.metadata_path)
        print("🔍 No existing metadata found. Starting generation pipeline...")
        df = self._generate_and_render_variations()
        self._generate_summary(df)
        return df

    # --- Step 1: Generation & Rendering ---
    @staticmethod
    def _overrides(row: pd.Series) -> dict:
        return {
            col[len(VARIABLE_PREFIX):]: float(row[col])
            for col in row.index
            if col.startswith(VARIABLE_PREFIX) and pd.notna(row[col])
        }

    def _generate_and_render_variations(self) -> pd.DataFrame:
        """Generates programs, renders them as PNG and SVG, and saves metadata."""
        df = self.generate_programs()
        records = []
        for i, row in tqdm(df.iterrows(), desc="Rendering variations", unit="variation", leave=False, total=len(df)):
            program_str = str(row['program_string'])
            output_path = self.images_dir / f"{i}.png"
            svg_path = self.images_dir / f"{i}.svg"
            try:
                image_array, svg, result = render_program(
                    program_str, int(row['seed']), self.settings, self._overrides(row), self.canvas_dim)
                export_image(image_array, str(output_path))
                export_svg(svg, str(svg_path))
                records.append({
                    "render_filepath": str(output_path),
                    "svg_filepath": str(svg_path),
                    "n_nodes": result.statistics.new_nodes,
                    "n_culled": result.statistics.nodes_culled,
                    "n_passes": result.statistics.passes,
                })
            except GrammarError as e:
                print(f"❌ Error rendering program for row {i} ('{program_str[:50]}...'): {e}")
                print(traceback.format_exc())
                records.append({"render_filepath": None})

        df = pd.concat([df, pd.DataFrame(records, index=df.index, columns=RENDER_COLUMNS)], axis=1)
        df.dropna(subset=['render_filepath'], inplace=True)
        df.to_csv(self.metadata_path, index=False)

        print(f"✅ Rendered {len(df)} variations for task '{self.task_name}'")
        print(f"✅ Images saved to: {self.images_dir}")
        print(f"✅ Metadata saved to: {self.metadata_path}")
        return df

    # --- Step 2: Summary Visualization ---
    def _label_for(self, row: pd.Series) -> str:
        parts = [f"seed={int(row['seed'])}"]
        parts += [f"{col[len(VARIABLE_PREFIX):]}={row[col]:g}" for col in row.index if col.startswith(VARIABLE_PREFIX)]
        return " ".join(parts)

    def _generate_summary(self, df: pd.DataFrame):
        """Pastes every rendered variation, labelled, into one grid image."""
        if df.empty:
            return
        print("\n🖼️ Generating summary grid")
        images = []
        for _, row in df.iterrows():
            img = self._add_label_to_image(Image.open(row['render_filepath']).convert('RGB'), self._label_for(row))
            images.append(self._add_border_to_image(img, "gray"))
        columns = min(self.grid_columns, len(images))
        rows = (len(images) + columns - 1) // columns
        img_w, img_h = images[0].size
        grid = Image.new("RGB", (columns * img_w, rows * img_h), "white")
        for i, img in enumerate(images):
            grid.paste(img, ((i % columns) * img_w, (i // columns) * img_h))
        summary_path = self.summary_dir / f"{self.task_name}.png"
        grid.save(summary_path)
        print(f"✅ Summary saved to: {summary_path}")

    # --- Static Utility Methods ---
    @staticmethod
    def _add_label_to_image(img: Image.Image, label: str) -> Image.Image:
        """Adds a red text label to the upper left corner of an image."""
        draw = ImageDraw.Draw(img)
        try:
            font = ImageFont.truetype("DejaVuSans.ttf", 24)
        except IOError:
            font = ImageFont.load_default()
        draw.text((10, 10), label, fill="red", font=font)
        return img

    @staticmethod
    def _add_border_to_image(image: Image.Image, color: str, width: int = 4) -> Image.Image:
        """Adds a colored border to an image."""
        bordered_img = Image.new("RGB", (image.width + 2*width, image.height + 2*width), color)
        bordered_img.paste(image, (width, width))
        return bordered_img
