"""Simple example showing path discovery and the scenario catalogue."""

from processprobe import build_scenarios, discover_paths, load_process_structure

STRUCTURE = {
    "schemaVersion": "1.0",
    "metadata": {"title": "Inbound lead"},
    "nodes": [
        {"id": "form", "label": "Form submitted", "stepType": "trigger", "executionOrder": 1},
        {"id": "contact", "label": "Create contact", "stepType": "action", "integration": "hubspot", "executionOrder": 2},
        {"id": "score", "label": "Lead score?", "stepType": "condition", "shape": "decision", "executionOrder": 3},
        {"id": "deal", "label": "Create deal", "stepType": "action", "integration": "hubspot", "executionOrder": 4},
        {"id": "nurture", "label": "Send nurture email", "stepType": "notification", "integration": "google_email", "executionOrder": 5},
    ],
    "connections": [
        {"from": "form", "to": "contact"},
        {"from": "contact", "to": "score"},
        {"from": "score", "to": "deal", "label": "hot"},
        {"from": "score", "to": "nurture", "label": "cold"},
    ],
}


def main():
    structure = load_process_structure(STRUCTURE)
    result = discover_paths(structure)

    print(f"Entry points: {result.entry_points}")
    print(f"Exit points: {result.exit_points}")
    for path in result.paths:
        print(f"  {' -> '.join(path.step_ids)}  decisions={[d.condition for d in path.decisions]}")

    for scenario in build_scenarios(structure, result):
        print(f"[{scenario.priority}] {scenario.name}")


if __name__ == "__main__":
    main()
