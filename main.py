#!/usr/bin/env python3
"""
Studio CRM - Interactive Menu Launcher
Run this file to access the common CRM commands through a simple menu.

Usage:
    python main.py
"""

import subprocess
import sys
import os

# Run the CLI module with the current interpreter
PYTHON = sys.executable
CRM = [PYTHON, "-m", "studiocrm.cli.main"]

# Project root on PYTHONPATH so 'studiocrm' package is importable
ENV = os.environ.copy()
ENV["PYTHONPATH"] = os.path.dirname(os.path.abspath(__file__))


def run(args: list[str]):
    """Run a CRM CLI command and return to menu when done."""
    print()
    subprocess.run(CRM + args, env=ENV)
    print()
    input("  Press Enter to return to menu...")


def prompt(label: str, required: bool = True) -> str:
    """Prompt user for input. Returns empty string if optional and skipped."""
    while True:
        value = input(f"  {label}: ").strip()
        if value:
            return value
        if not required:
            return ""
        print("  (required - please enter a value)")


def prompt_optional(label: str) -> str:
    return prompt(f"{label} (optional, Enter to skip)", required=False)


def clear():
    os.system("cls" if os.name == "nt" else "clear")


# =============================================================================
# COMMAND HANDLERS
# =============================================================================

def venues_list():
    args = ["venues", "list"]
    s = prompt_optional("Filter by status (To Contact/Contacted/Ignore/Previous Client)")
    c = prompt_optional("Filter by category (Ultimate Dream Goal/Accessible/Unconventional/For Review)")
    if s: args += ["--status", s]
    if c: args += ["--category", c]
    run(args)

def venues_show():
    run(["venues", "show", prompt("Venue ID")])

def venues_add():
    run(["venues", "add"])

def venues_move():
    vid = prompt("Venue ID")
    pos = prompt("New position (1 = top)")
    run(["venues", "move", vid, pos])

def venues_column():
    vid = prompt("Venue ID")
    args = ["venues", "column", vid]
    s = prompt_optional("New status")
    c = prompt_optional("New category")
    if s: args += ["--status", s]
    if c: args += ["--category", c]
    run(args)

def contacts_list():
    args = ["contacts", "list"]
    v = prompt_optional("Only people at venue ID")
    if v: args += ["--venue", v]
    run(args)

def contacts_show():
    run(["contacts", "show", prompt("Contact ID")])

def contacts_add():
    args = ["contacts", "add"]
    v = prompt_optional("Link to venue IDs (comma-separated)")
    if v: args += ["--venues", v]
    run(args)

def projects_list():
    run(["projects", "list"])

def projects_show():
    run(["projects", "show", prompt("Project ID")])

def projects_add():
    args = ["projects", "add"]
    v = prompt_optional("Venue IDs (comma-separated)")
    if v: args += ["--venues", v]
    run(args)

def tasks_list():
    args = ["tasks", "list"]
    s = prompt_optional("Filter by status (To Do/In Progress/Completed/Cancelled)")
    if s: args += ["--status", s]
    run(args)

def tasks_add():
    args = ["tasks", "add"]
    v = prompt_optional("Venue IDs (comma-separated)")
    p = prompt_optional("Project IDs (comma-separated)")
    if v: args += ["--venues", v]
    if p: args += ["--projects", p]
    run(args)

def tasks_done():
    run(["tasks", "done", prompt("Task ID")])

def outreach_list():
    run(["outreach", "list"])

def outreach_log():
    args = ["outreach", "log"]
    v = prompt_optional("Venue ID")
    c = prompt_optional("Contact ID")
    if v: args += ["--venue", v]
    if c: args += ["--contact", c]
    run(args)

def actions():
    run(["actions"])

def pipeline():
    run(["pipeline"])

def recent():
    run(["recent"])

def search():
    run(["search", prompt("Search for")])

def scout():
    args = ["scout"]
    focus = prompt_optional("Focus (city, region or keyword)")
    if focus: args += ["--focus", focus]
    n = prompt_optional("Max venues to add (default: 10)")
    if n: args += ["--max-results", n]
    model = input("  AI model - claude or deepseek-chat (default: claude): ").strip().lower()
    if model in ("claude", "deepseek-chat", "deepseek-reasoner"): args += ["--model", model]
    run(args)


# =============================================================================
# MENU LAYOUT
# =============================================================================

MENU = [
    ("VENUES", [
        ("List venues",                  venues_list),
        ("Show venue details",           venues_show),
        ("Add venue",                    venues_add),
        ("Move venue in ranking",        venues_move),
        ("Change status / category",     venues_column),
    ]),
    ("PEOPLE", [
        ("List people",                  contacts_list),
        ("Show person",                  contacts_show),
        ("Add person",                   contacts_add),
    ]),
    ("PROJECTS & TASKS", [
        ("List projects",                projects_list),
        ("Show project",                 projects_show),
        ("Add project",                  projects_add),
        ("List tasks",                   tasks_list),
        ("Add task",                     tasks_add),
        ("Complete task",                tasks_done),
    ]),
    ("OUTREACH", [
        ("List outreach",                outreach_list),
        ("Log outreach",                 outreach_log),
    ]),
    ("DASHBOARD", [
        ("Action items",                 actions),
        ("Pipeline summary",             pipeline),
        ("Recent activity",              recent),
        ("Search everything",            search),
    ]),
    ("VENUE SCOUT", [
        ("Scout for open calls",         scout),
    ]),
]


def print_menu():
    clear()
    print("=" * 50)
    print("   STUDIO CRM - COMMAND CENTRE")
    print("=" * 50)

    n = 1
    numbering = {}  # maps display number -> handler function

    for section, commands in MENU:
        print(f"\n  {section}")
        print(f"  {'-' * len(section)}")
        for label, handler in commands:
            print(f"  {n:>2}.  {label}")
            numbering[n] = handler
            n += 1

    print("\n" + "=" * 50)
    print("   0.  Exit")
    print("=" * 50)
    return numbering


def main():
    while True:
        numbering = print_menu()

        try:
            choice = input("\n  Select a command: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\n\n  Goodbye!\n")
            break

        if choice == "0" or choice.lower() in ("q", "quit", "exit"):
            print("\n  Goodbye!\n")
            break

        try:
            n = int(choice)
        except ValueError:
            print("\n  Please enter a number.")
            input("  Press Enter to continue...")
            continue

        if n in numbering:
            clear()
            numbering[n]()
        else:
            print(f"\n  Invalid selection: {choice}")
            input("  Press Enter to continue...")


if __name__ == "__main__":
    main()
