import shutil

from homesnap.globals import Globals
from homesnap.log import logger


def check_system_dependencies(required=Globals.REQUIRED_SYSTEM_BINS):
	"""
	Checks whether all required system binaries are available in the system's PATH.

	Returns:
		bool: True if all binaries are found, False otherwise.
	"""
	for current_bin in required:
		path = shutil.which(current_bin)
		if path is None:
			logger.error(f"homesnap requires {current_bin}. Please install it on your system.")
			return False
	return True


def ask_yes_no(prompt, default=None):
	"""
	Prompt the user with a yes/no question and return their response as a boolean

	Parameters:
	prompt (str): The question to display to the user
	default (bool | None): Answer used for an empty input, None to insist on an answer

	Returns:
		bool: True if the user answers 'y' or 'yes', False if the 'n' or 'no'
	"""
	while True: 
		answer = input(prompt).strip().lower()
		if not answer and default is not None:
			return default
		if answer == "y" or answer == "yes":
			return True
		elif answer == "n" or answer == "no":
			return False
		else:
			print ("Please answer 'y', 'yes', 'n', or 'no'.")


def ask_value(prompt, default=""):
	"""Prompts for a free-text value, returning `default` for an empty input."""
	answer = input(f"{prompt} [{default}]: ").strip()
	return answer or default


def choose_option(prompt, options):
	"""
	Prompts the user to choose from a list of options.
	Returns the selected option, or None if the user quits.
	"""
	print(f"\n{prompt}")
	for i, key in enumerate(options, 1):
		print(f"  {i}. {key}")

	while True:
		choice = input("\nEnter the number of your choice ([q] to quit): ").strip().lower()
		if choice in {"", "q", "quit"}:
			return None
		if choice.isdigit():
			idx = int(choice) - 1
			if 0 <= idx < len(options):
				return options[idx]
		print("Invalid choice. Please try again.")
