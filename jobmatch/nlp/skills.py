# jobmatch/nlp/skills.py
import re

# Canonical technical vocabulary. Output order of extract_skills follows this
# tuple, not the order skills appear in the text.
TECH_SKILLS: tuple[str, ...] = (
    # languages
    "JavaScript", "TypeScript", "Python", "Java", "C#", "C++", "PHP", "Ruby", "Go",
    "Rust", "Swift", "Kotlin", "Scala", "R", "MATLAB", "Perl", "Shell", "Bash", "PowerShell",
    # frontend
    "HTML", "CSS", "SASS", "LESS", "React", "Vue", "Angular", "Svelte", "jQuery",
    "Node.js", "Express", "Next.js", "Nuxt", "Gatsby", "Redux", "MobX", "Webpack", "Vite", "Babel",
    # backend frameworks
    "Django", "Flask", "FastAPI", "Spring", "Spring Boot", "Laravel", "Symfony", "Rails",
    "ASP.NET", ".NET Core", "NestJS", "Koa", "Fastify",
    # databases
    "PostgreSQL", "MySQL", "MongoDB", "Redis", "Cassandra", "DynamoDB", "Elasticsearch",
    "SQLite", "Oracle", "SQL Server", "MariaDB", "Neo4j", "CouchDB",
    # cloud / devops
    "AWS", "Azure", "GCP", "Google Cloud", "Docker", "Kubernetes", "Jenkins", "GitLab CI",
    "GitHub Actions", "CircleCI", "Travis CI", "Terraform", "Ansible", "Puppet", "Chef",
    # mobile
    "React Native", "Flutter", "Ionic", "Xamarin", "Android", "iOS",
    # data / ml
    "TensorFlow", "PyTorch", "Keras", "scikit-learn", "Pandas", "NumPy", "Apache Spark",
    "Hadoop", "Kafka", "Machine Learning", "Deep Learning", "NLP", "Computer Vision", "Data Science",
    # testing
    "Jest", "Mocha", "Chai", "Cypress", "Selenium", "Playwright", "JUnit", "PyTest", "PHPUnit",
    # apis / protocols
    "GraphQL", "REST", "gRPC", "WebSocket", "OAuth", "JWT",
    # tooling / process
    "Git", "GitHub", "GitLab", "Bitbucket", "Jira", "Agile", "Scrum", "Microservices",
    "API", "CI/CD", "Linux", "Unix", "Windows Server",
)

EDUCATION_KEYWORDS: tuple[str, ...] = (
    "Bachelor", "Master", "PhD", "B.S.", "M.S.", "B.Tech", "M.Tech", "MBA", "Diploma",
)


def _skill_pattern(skill: str) -> re.Pattern:
    # \b does not work next to '#', '+' or '.', so use look-arounds on word chars
    return re.compile(r"(?<![\w])" + re.escape(skill) + r"(?![\w])", re.I)


_SKILL_PATS: tuple[tuple[str, re.Pattern], ...] = tuple((s, _skill_pattern(s)) for s in TECH_SKILLS)


def extract_skills(text: str) -> list[str]:
    """Vocabulary skills present in `text`, case-insensitive, whole-token, de-duplicated."""
    if not text:
        return []
    out: list[str] = []
    seen = set()
    for skill, pat in _SKILL_PATS:
        key = skill.lower()
        if key in seen:
            continue
        if pat.search(text):
            seen.add(key)
            out.append(skill)
    return out


def extract_education(text: str) -> list[str]:
    # case-sensitive on purpose: "master" as a verb is not a degree
    if not text:
        return []
    return [k for k in EDUCATION_KEYWORDS if k in text]
