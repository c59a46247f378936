# main.py
import logging
import os

from database import DatabaseManager
from layers.memory_directory import InMemoryTabDirectory
from Providers.InitAIProvider import AIProviderManager
from tracker import TabTracker

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')


def load_ai_provider():
    """Last saved provider, else the first one with an API key in the environment."""
    manager = AIProviderManager()
    provider = manager.restore()
    if provider is None:
        env_manager = AIProviderManager.detect_from_environment()
        provider = env_manager.get_default_provider() if env_manager else None
    if provider is None:
        print("No AI provider configured; classification uses rules only.")
    return provider


def display_report(tracker):
    """Run an analysis and print it."""
    result = tracker.analyze_session()
    if not result.success:
        print(f"Analysis failed: {result.message}")
        return
    report = result.details
    print(f"\nProductivity score: {report['score']}")
    print(f"Tracked tabs: {report['total_tabs']}")
    print("Time per category (s):")
    for category, spent in report["time_per_category"].items():
        if spent:
            print(f"  {category}: {spent / 1000:.1f}")
    if report["time_sinks"]:
        print(f"Time sinks: {', '.join(report['time_sinks'])}")


def workspace_demo(tracker, directory):
    """Creates a workspace, suspends it and loads it back."""
    print("--- Workspace Demo ---")
    docs = directory.open_tab("https://developer.mozilla.org/en-US/docs/Web", "MDN Web Docs", activate=True)
    repo = directory.open_tab("https://github.com/example/project", "example/project")
    directory.open_tab("https://www.youtube.com/watch?v=abc", "Some video")

    created = tracker.create_workspace("Project")
    print(created.message)
    workspace_id = created.details["workspace_id"]
    for tab in (docs, repo):
        print(tracker.assign_tab_to_workspace(tab.tab_id, workspace_id).message)

    print(tracker.focus_on_workspace(workspace_id).message)
    print(tracker.suspend_workspace(workspace_id).message)
    print(tracker.load_workspace(workspace_id).message)
    print("--------------------------------\n")


def focus_demo(tracker, directory):
    """Focus mode blocks a distraction; the pause page can let it through once."""
    print("--- Focus Mode Demo ---")
    print(tracker.toggle_focus_mode().message)
    tab = directory.open_tab("https://www.reddit.com/r/python", "r/python", activate=True)
    print(f"Tab now shows: {directory.get_tab(tab.tab_id).url}")
    print(tracker.override_block(tab.tab_id, "https://www.reddit.com/r/python").message)
    print(f"Tab now shows: {directory.get_tab(tab.tab_id).url}")
    print(tracker.cleanup_distractions().message)
    print(tracker.toggle_focus_mode().message)
    print("--------------------------------\n")


if __name__ == "__main__":
    directory = InMemoryTabDirectory()
    tracker = TabTracker(
        directory,
        kv_store=DatabaseManager(environment=os.getenv("TABFLOW_ENV", "development")),
        ai_provider=load_ai_provider(),
    )
    try:
        workspace_demo(tracker, directory)
        focus_demo(tracker, directory)
        tracker.wait_for_classifications(timeout=30)
        display_report(tracker)
        print(f"Sites to review: {[entry.url for entry in tracker.get_review_queue()]}")
    finally:
        tracker.shutdown()
