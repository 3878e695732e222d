from repo_scope.models.analysis import AIAnalysis, AnalysisInput, TechnologyCategory, TechnologyInfo
from repo_scope.models.repository.tree import iter_file_nodes

FALLBACK_ARCHITECTURE = "Architecture analysis requires AI processing. The file structure indicates a standard project layout."
FALLBACK_PURPOSE = "Purpose not determined. Please check the README for more details."
FALLBACK_KEY_FEATURE = "See repository documentation for features"

FALLBACK_TECHNOLOGY_CONFIDENCE = 0.9
MAX_FALLBACK_KEY_FEATURES = 5

FRONTEND_LANGUAGES: frozenset[str] = frozenset({"JavaScript", "TypeScript", "CSS", "HTML"})

TECHNOLOGY_BY_FILENAME: dict[str, tuple[str, TechnologyCategory]] = {
    "package.json": ("Node.js", "backend"),
    "requirements.txt": ("Python", "backend"),
    "Cargo.toml": ("Rust", "backend"),
    "go.mod": ("Go", "backend"),
    "pom.xml": ("Java/Maven", "backend"),
    "Gemfile": ("Ruby", "backend"),
    "composer.json": ("PHP", "backend"),
    "Dockerfile": ("Docker", "devops"),
    "docker-compose.yml": ("Docker Compose", "devops"),
    "tsconfig.json": ("TypeScript", "frontend"),
}


def detect_technologies(analysis_input: AnalysisInput) -> list[TechnologyInfo]:
    technologies: dict[str, TechnologyInfo] = {}

    for node in iter_file_nodes(analysis_input.file_tree):
        if node.type != "file" or node.name not in TECHNOLOGY_BY_FILENAME:
            continue

        name, category = TECHNOLOGY_BY_FILENAME[node.name]

        if name not in technologies:
            technologies[name] = TechnologyInfo(name=name, category=category, confidence=FALLBACK_TECHNOLOGY_CONFIDENCE)

    if (language := analysis_input.language) and language not in technologies:
        category: TechnologyCategory = "frontend" if language in FRONTEND_LANGUAGES else "backend"
        technologies[language] = TechnologyInfo(name=language, category=category, confidence=1)

    return list(technologies.values())


def topic_to_feature(topic: str) -> str:
    return (topic[:1].upper() + topic[1:]).replace("-", " ")


def fallback_analysis(analysis_input: AnalysisInput) -> AIAnalysis:
    """Derive a best-effort analysis from filenames and metadata alone."""

    key_features: list[str] = [topic_to_feature(topic) for topic in analysis_input.topics[:MAX_FALLBACK_KEY_FEATURES]] or [
        FALLBACK_KEY_FEATURE
    ]

    return AIAnalysis(
        overview=analysis_input.description or f"A {analysis_input.language or 'software'} project on GitHub.",
        purpose=analysis_input.description or FALLBACK_PURPOSE,
        architecture=FALLBACK_ARCHITECTURE,
        key_features=key_features,
        technologies=detect_technologies(analysis_input),
        insights=[
            f"Primary language: {analysis_input.language or 'Unknown'}",
            "Has README documentation" if analysis_input.readme else "No README found",
            f"{len(analysis_input.file_tree)} top-level items in repository",
        ],
    )
