"""MatrixLoader - loads matrix configuration and skill records from YAML."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import ValidationError

from .builder import LOCAL_AUTHOR, build_mvp_matrix, merge_local_skills, merge_matrix_with_skills
from .errors import MatrixLoadError, MissingFieldsError
from .models import ExtractedSkillMetadata, SkillsMatrix, SkillsMatrixConfig

logger = logging.getLogger(__name__)

REQUIRED_MATRIX_FIELDS = [
    "version",
    "categories",
    "relationships",
    "suggested_stacks",
    "skill_aliases",
]
REQUIRED_RELATIONSHIP_FIELDS = ["conflicts", "recommends", "requires", "alternatives"]
REQUIRED_CATEGORY_FIELDS = ["id", "name", "description", "exclusive", "required", "order"]


class MatrixLoader:
    """
    Loads the skills matrix configuration and skill records.

    The loader handles:
    - YAML parsing
    - Structural checks for required sections and fields
    - Pydantic validation of the configuration and skill records
    - Merging everything into a SkillsMatrix

    Example:
        loader = MatrixLoader()
        matrix = loader.load_matrix(
            "config/skills-matrix.yaml",
            skills_path="config/skills.yaml",
        )
    """

    def load_from_file(self, file_path: Union[str, Path]) -> SkillsMatrixConfig:
        """
        Load a matrix configuration from a YAML file.

        Raises:
            MatrixLoadError: If the file cannot be read, parsed, or validated
        """
        content = self._read_file(file_path)
        return self.load_from_string(content, source=str(file_path))

    def load_from_string(
        self, yaml_content: str, source: Optional[str] = None
    ) -> SkillsMatrixConfig:
        """
        Load a matrix configuration from a YAML string.

        Raises:
            MatrixLoadError: If the YAML cannot be parsed or validated
        """
        data = self._parse_yaml(yaml_content, source)
        if not isinstance(data, dict):
            raise MatrixLoadError("Matrix configuration must be a dictionary", source=source)
        return self.load_from_dict(data, source=source)

    def load_from_dict(
        self, data: Dict[str, Any], source: Optional[str] = None
    ) -> SkillsMatrixConfig:
        """
        Load a matrix configuration from a dictionary.

        Raises:
            MatrixLoadError: If required fields are missing or validation fails
        """
        self._validate_structure(data, source)

        try:
            config = SkillsMatrixConfig(**data)
        except ValidationError as e:
            raise MatrixLoadError(
                "Matrix configuration validation failed", source=source, validation_error=e
            )

        logger.debug("Loaded skills matrix: %s", source or "<dict>")
        return config

    def _validate_structure(self, data: Dict[str, Any], source: Optional[str]) -> None:
        """Check required sections before handing the data to pydantic."""
        missing = [f for f in REQUIRED_MATRIX_FIELDS if f not in data]
        if missing:
            raise MissingFieldsError("Skills matrix", missing, source=source)

        relationships = data.get("relationships")
        if not isinstance(relationships, dict):
            raise MissingFieldsError(
                "Skills matrix relationships", REQUIRED_RELATIONSHIP_FIELDS, source=source
            )
        missing = [f for f in REQUIRED_RELATIONSHIP_FIELDS if f not in relationships]
        if missing:
            raise MissingFieldsError("Skills matrix relationships", missing, source=source)

        categories = data.get("categories")
        if not isinstance(categories, dict):
            raise MatrixLoadError("'categories' must be a mapping", source=source)
        for category_id, category in categories.items():
            if not isinstance(category, dict):
                raise MatrixLoadError(
                    f"Category '{category_id}' must be a dictionary", source=source
                )
            missing = [f for f in REQUIRED_CATEGORY_FIELDS if f not in category]
            if missing:
                raise MissingFieldsError(f"Category '{category_id}'", missing, source=source)

    # -------------------------------------------------------------------------
    # Skill records
    # -------------------------------------------------------------------------

    def load_skills_from_file(
        self, file_path: Union[str, Path], local: bool = False
    ) -> List[ExtractedSkillMetadata]:
        """Load a YAML list of skill records from a file."""
        content = self._read_file(file_path)
        return self.load_skills_from_string(content, local=local, source=str(file_path))

    def load_skills_from_string(
        self, yaml_content: str, local: bool = False, source: Optional[str] = None
    ) -> List[ExtractedSkillMetadata]:
        """Load a YAML list of skill records from a string."""
        data = self._parse_yaml(yaml_content, source)
        if data is None:
            return []
        if isinstance(data, dict) and "skills" in data:
            data = data["skills"]
        if not isinstance(data, list):
            raise MatrixLoadError("Skill records must be a list", source=source)
        return self.load_skills_from_list(data, local=local, source=source)

    def load_skills_from_list(
        self,
        records: List[Any],
        local: bool = False,
        source: Optional[str] = None,
    ) -> List[ExtractedSkillMetadata]:
        """
        Validate a list of skill records.

        Records either carry the extracted fields directly (`id`, `name`,
        `category`, ...) or follow the metadata.yaml layout (`cli_name`,
        `cli_description`, ...), in which case they are converted.

        Args:
            records: Raw skill records
            local: Mark every record as a project-local skill
            source: Description of where the records came from

        Raises:
            MatrixLoadError: If a record is malformed
        """
        skills: List[ExtractedSkillMetadata] = []

        for i, record in enumerate(records):
            if not isinstance(record, dict):
                raise MatrixLoadError(f"Skill record {i} must be a dictionary", source=source)
            if "id" not in record:
                raise MatrixLoadError(f"Skill record {i} must have an 'id' field", source=source)

            try:
                if local:
                    skill = self._local_skill(record)
                elif "cli_name" in record or "name" not in record:
                    raw = dict(record)
                    skill_id = raw.pop("id")
                    skill = ExtractedSkillMetadata.from_raw_metadata(
                        skill_id,
                        raw,
                        description=raw.get("description", ""),
                        skill_dir=raw.get("directory_path", ""),
                    )
                else:
                    skill = ExtractedSkillMetadata(**record)
            except ValidationError as e:
                raise MatrixLoadError(
                    f"Skill record {i} validation failed", source=source, validation_error=e
                )

            skills.append(skill)
            logger.debug("Extracted skill: %s", skill.id)

        return skills

    def _local_skill(self, record: Dict[str, Any]) -> ExtractedSkillMetadata:
        """Build a local skill record; local skills never carry relationships."""
        directory = record.get("directory_path") or record["id"]
        local_path = record.get("local_path") or f".claude/skills/{directory}/"
        cli_name = record.get("cli_name") or record.get("name") or record["id"]

        return ExtractedSkillMetadata(
            id=record["id"],
            directory_path=directory,
            name=f"{cli_name} {LOCAL_AUTHOR}",
            description=record.get("cli_description") or record.get("description", ""),
            category="local",
            category_exclusive=False,
            author=LOCAL_AUTHOR,
            tags=record.get("tags") or [],
            path=local_path,
            local=True,
            local_path=local_path,
        )

    # -------------------------------------------------------------------------
    # Convenience
    # -------------------------------------------------------------------------

    def load_matrix(
        self,
        matrix_path: Union[str, Path],
        skills_path: Optional[Union[str, Path]] = None,
        local_skills_path: Optional[Union[str, Path]] = None,
    ) -> SkillsMatrix:
        """
        Load the configuration and skill records and merge them.

        Without `skills_path` the matrix is built from the configuration
        alone, with one synthetic skill per alias.

        Args:
            matrix_path: Matrix configuration YAML
            skills_path: Optional YAML list of skill records
            local_skills_path: Optional YAML list of project-local skills

        Returns:
            Merged SkillsMatrix
        """
        config = self.load_from_file(matrix_path)

        if skills_path is not None:
            matrix = merge_matrix_with_skills(config, self.load_skills_from_file(skills_path))
        else:
            matrix = build_mvp_matrix(config)

        if local_skills_path is not None:
            local_skills = self.load_skills_from_file(local_skills_path, local=True)
            logger.info("Found %d local skill(s) in %s", len(local_skills), local_skills_path)
            matrix = merge_local_skills(matrix, local_skills)

        return matrix

    def _read_file(self, file_path: Union[str, Path]) -> str:
        file_path = Path(file_path)

        if not file_path.exists():
            raise MatrixLoadError(f"File not found: {file_path}")

        if not file_path.is_file():
            raise MatrixLoadError(f"Path is not a file: {file_path}")

        try:
            return file_path.read_text(encoding="utf-8")
        except Exception as e:
            raise MatrixLoadError(f"Failed to read file {file_path}: {e}")

    def _parse_yaml(self, content: str, source: Optional[str]) -> Any:
        try:
            return yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise MatrixLoadError(f"Failed to parse YAML: {e}", source=source)
