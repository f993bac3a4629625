import os
import yaml
import logging
from typing import Dict, Optional
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler
from config.settings import settings
import threading

logger = logging.getLogger(__name__)

class TemplateHandler(FileSystemEventHandler):
    def __init__(self, template_manager):
        self.template_manager = template_manager

    def on_modified(self, event):
        if not event.is_directory and os.path.abspath(event.src_path) == self.template_manager.templates_file:
            logger.info("Templates file modified, reloading...")
            self.template_manager.reload_templates()

class TemplateManager:
    def __init__(self, templates_file: Optional[str] = None, watch: bool = True):
        self.templates_file = os.path.abspath(templates_file or settings.TEMPLATES_FILE)
        self.templates = {}
        self.observer = None
        self.lock = threading.RLock()
        self.load_templates()
        if watch:
            self.start_watching()

    def load_templates(self) -> bool:
        """Load templates from YAML file"""
        try:
            with open(self.templates_file, 'r', encoding='utf-8') as file:
                data = yaml.safe_load(file)

            if not isinstance(data, dict) or 'templates' not in data:
                raise ValueError("Templates file must contain 'templates' key")

            with self.lock:
                self.templates = data['templates']

            logger.info(f"Loaded {len(self.templates)} templates")
            return True

        except (OSError, yaml.YAMLError, ValueError) as e:
            logger.error(f"Error loading templates: {e}")
            if not self.templates:  # If no templates loaded yet, use defaults
                self.templates = self._get_default_templates()
            return False

    def reload_templates(self):
        """Reload templates, keeping the previous set on failure"""
        old_templates = self.templates.copy()
        if self.load_templates():
            self._log_template_update("Templates reloaded successfully")
        else:
            with self.lock:
                self.templates = old_templates
            self._log_template_update("Template reload failed, keeping previous templates")

    def get_template(self, template_key: str) -> str:
        """Get template by key, falling back to the built-in default"""
        with self.lock:
            entry = self.templates.get(template_key)
        if not isinstance(entry, dict) or 'format' not in entry:
            default = self._get_default_templates().get(template_key)
            if default is None:
                logger.warning(f"Template '{template_key}' not found")
                return "Template not found: " + template_key
            return default['format']
        return entry['format']

    def format_message(self, template_key: str, **kwargs) -> str:
        """Format message using template"""
        template = self.get_template(template_key)
        try:
            return template.format(**kwargs)
        except KeyError as e:
            logger.error(f"Missing template variable: {e}")
            return f"Template error: missing variable {e}"
        except (ValueError, IndexError) as e:
            logger.error(f"Template formatting error: {e}")
            return f"Template formatting error: {e}"

    def start_watching(self):
        """Start watching templates file for changes"""
        watch_dir = os.path.dirname(self.templates_file)
        if not os.path.isdir(watch_dir):
            logger.warning(f"Templates directory {watch_dir} missing, not watching for changes")
            return
        try:
            self.observer = Observer()
            event_handler = TemplateHandler(self)
            self.observer.schedule(event_handler, watch_dir, recursive=False)
            self.observer.start()

            logger.info("Started watching templates file for changes")

        except OSError as e:
            logger.error(f"Failed to start template file watcher: {e}")
            self.observer = None

    def stop_watching(self):
        """Stop watching templates file"""
        if self.observer:
            self.observer.stop()
            self.observer.join()
            self.observer = None
            logger.info("Stopped watching templates file")

    def _log_template_update(self, message: str):
        """Log template updates to separate file"""
        template_logger = logging.getLogger('templates')
        template_logger.info(message)

    def _get_default_templates(self) -> Dict:
        """Get default templates as fallback"""
        return {
            'banner': {'format': 'ORDER CONFIRMATION LISTENER\nPipe: {pipe}\nStarted: {started}\nStatus: Waiting for server...'},
            'waiting': {'format': '[{time}] Still waiting for server... (attempt {attempt})'},
            'connected': {'format': '\n[{time}] CONNECTED to server!\nReady to receive order confirmations...\n'},
            'connection_lost': {'format': '\n[{time}] Connection lost. Reconnecting...'},
            'error': {'format': '[{time}] Error: {error}'},
            'decode_error': {'format': '\n[{time}] JSON Error: {error}\nData (first {limit} chars): {preview}'},
            'order_summary': {'format': '\n[{time}] NEW ORDER #{number}\n    ID: {order_id}\n    Payment: {payment_method}\n    Total: ${total:.2f}\n    Items: {item_count}'},
            'order_details': {'format': '    User: {user}\n    Time: {timestamp}\n    Message: {message}'},
            'items_header': {'format': '    Items:'},
            'order_item': {'format': '      - {name} (x{quantity}) @ ${price:.2f}'},
            'shutdown_summary': {'format': '\nListener stopped: {stopped}\nOrders received: {orders}\nConnection attempts: {attempts}\nFirst connected: {first_connected}'},
        }
