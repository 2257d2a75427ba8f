"""GitHub Actions workflow templates.

Used whenever the advisor cannot produce a workflow.
"""

_TRIGGERS = """on:
  push:
    branches: [ main ]
  pull_request:
    branches: [ main ]
"""

_RENDER_DEPLOY_STEP = """      - name: Deploy to Render
        env:
          RENDER_API_KEY: ${{ secrets.RENDER_API_KEY }}
        run: |
          curl -X POST "https://api.render.com/v1/services/${{ secrets.RENDER_SERVICE_ID }}/deploys" \\
          -H "accept: application/json" \\
          -H "authorization: Bearer ${{ secrets.RENDER_API_KEY }}"
"""

_NODE_SETUP = """      - name: Setup Node.js
        uses: actions/setup-node@v4
        with:
          node-version: '18'
          cache: 'npm'

      - name: Install dependencies
        run: npm ci

      - name: Build
        run: npm run build
"""

_PYTHON_SETUP = """      - name: Set up Python
        uses: actions/setup-python@v5
        with:
          python-version: '3.10'
          cache: 'pip'

      - name: Install dependencies
        run: |
          python -m pip install --upgrade pip
          pip install -r requirements.txt
"""

_MAVEN_SETUP = """      - name: Set up JDK
        uses: actions/setup-java@v4
        with:
          java-version: '17'
          distribution: 'temurin'
          cache: 'maven'

      - name: Build with Maven
        run: mvn -B package --file pom.xml
"""

_DJANGO_CHECKS = """      - name: Run Django checks
        run: python manage.py check --deploy
"""


def _workflow(name: str, job: str, steps: str) -> str:
    return f"""name: {name}

{_TRIGGERS}
jobs:
  {job}:
    runs-on: ubuntu-latest
    steps:
      - uses: actions/checkout@v4

{steps}"""


def _docker_workflow(build_steps: str = "") -> str:
    steps = build_steps + "\n" if build_steps else ""
    steps += """      - name: Set up Docker Buildx
        uses: docker/setup-buildx-action@v3

      - name: Login to Docker Hub
        uses: docker/login-action@v3
        with:
          username: ${{ secrets.DOCKER_USERNAME }}
          password: ${{ secrets.DOCKER_PASSWORD }}

      - name: Build and push
        uses: docker/build-push-action@v5
        with:
          context: .
          push: true
          tags: ${{ secrets.DOCKER_USERNAME }}/${{ github.event.repository.name }}:latest
"""
    return _workflow("Build and Push Docker Image", "build-and-push", steps)


DEFAULT_TEMPLATES: dict[str, str] = {
    "nextjs": _workflow(
        "Deploy Next.js App",
        "build-and-deploy",
        _NODE_SETUP
        + """
      - name: Deploy to Vercel
        uses: amondnet/vercel-action@v25
        with:
          vercel-token: ${{ secrets.VERCEL_TOKEN }}
          vercel-org-id: ${{ secrets.VERCEL_ORG_ID }}
          vercel-project-id: ${{ secrets.VERCEL_PROJECT_ID }}
          working-directory: ./
          vercel-args: '--prod'
""",
    ),
    "node": _workflow(
        "Deploy Node.js App", "build-and-deploy", _NODE_SETUP + "\n" + _RENDER_DEPLOY_STEP
    ),
    "flask": _workflow(
        "Deploy Flask App", "build-and-deploy", _PYTHON_SETUP + "\n" + _RENDER_DEPLOY_STEP
    ),
    "django": _workflow(
        "Deploy Django App",
        "build-and-deploy",
        _PYTHON_SETUP + "\n" + _DJANGO_CHECKS + "\n" + _RENDER_DEPLOY_STEP,
    ),
    "springboot": _workflow(
        "Deploy Spring Boot App", "build-and-deploy", _MAVEN_SETUP + "\n" + _RENDER_DEPLOY_STEP
    ),
}

DOCKER_TEMPLATES: dict[str, str] = {
    "nextjs": _docker_workflow(),
    "node": _docker_workflow(),
    "flask": _docker_workflow(),
    "django": _docker_workflow(),
    "springboot": _docker_workflow(_MAVEN_SETUP),
}

# Vercel detects the framework at deploy time, so one workflow serves all
VERCEL_TEMPLATE = DEFAULT_TEMPLATES["nextjs"]

DEFAULT_FRAMEWORK = "node"


def select_template(framework: str, platform: str | None = None, docker: bool = False) -> str:
    """Pick the fallback workflow for a framework and deployment choice."""
    if docker:
        return DOCKER_TEMPLATES.get(framework, DOCKER_TEMPLATES[DEFAULT_FRAMEWORK])
    if platform == "vercel":
        return VERCEL_TEMPLATE
    return DEFAULT_TEMPLATES.get(framework, DEFAULT_TEMPLATES[DEFAULT_FRAMEWORK])
