import asyncio
import threading
import tkinter as tk
from tkinter import scrolledtext
from tkinter import ttk

from chat_core.api.service import get_default_session, send_message
from chat_core.config.settings import settings
from chat_core.prompts import WELCOME_MESSAGE
from chat_core.providers.registry import BackendKind


TYPING_TEXT = "Anmolz AI is typing..."


class App:
    def __init__(self, root):
        self.root = root
        self.root.title("Anmolz AI")
        self.session = get_default_session()
        self.sending = False
        self.kinds = list(BackendKind)
        top = tk.Frame(root)
        top.pack(fill=tk.X)
        tk.Label(top, text="Model").pack(side=tk.LEFT)
        self.backend = ttk.Combobox(top, values=[k.label for k in self.kinds], state="readonly")
        self.backend.current(self.kinds.index(BackendKind.parse(settings.default_backend)))
        self.backend.pack(side=tk.LEFT)
        tk.Label(top, text="API key").pack(side=tk.LEFT)
        self.api_key = tk.Entry(top, show="*")
        self.api_key.pack(side=tk.LEFT, fill=tk.X, expand=True)
        self.chat = scrolledtext.ScrolledText(root, width=80, height=24, wrap=tk.WORD)
        self.chat.pack(fill=tk.BOTH, expand=True)
        self.chat.tag_config("user", foreground="#1a73e8")
        self.chat.tag_config("bot", foreground="#34a853")
        self.chat.tag_config("typing", foreground="#5f6368")
        self.chat.tag_config("error", foreground="#d93025")
        bottom = tk.Frame(root)
        bottom.pack(fill=tk.X)
        self.entry = tk.Entry(bottom)
        self.entry.pack(side=tk.LEFT, fill=tk.X, expand=True)
        self.entry.bind("<Return>", self.on_send_event)
        self.send_btn = tk.Button(bottom, text="Send", command=self.on_send)
        self.send_btn.pack(side=tk.LEFT)
        tk.Button(bottom, text="Clear", command=self.on_clear).pack(side=tk.LEFT)
        self.chat.configure(state=tk.DISABLED)
        self.append_message(WELCOME_MESSAGE, "bot")

    def selected_backend(self) -> BackendKind:
        return self.kinds[self.backend.current()]

    def append_message(self, text, who="bot"):
        self.chat.configure(state=tk.NORMAL)
        self.chat.insert(tk.END, text + "\n\n", who)
        self.chat.configure(state=tk.DISABLED)
        self.chat.see(tk.END)

    def show_typing(self):
        self.chat.configure(state=tk.NORMAL)
        self.chat.mark_set("typing_start", tk.END + "-1c")
        self.chat.mark_gravity("typing_start", tk.LEFT)
        self.chat.insert(tk.END, TYPING_TEXT + "\n\n", "typing")
        self.chat.configure(state=tk.DISABLED)
        self.chat.see(tk.END)

    def hide_typing(self):
        self.chat.configure(state=tk.NORMAL)
        self.chat.delete("typing_start", tk.END + "-1c")
        self.chat.configure(state=tk.DISABLED)

    def set_pending(self, value):
        self.sending = value
        state = tk.DISABLED if value else tk.NORMAL
        self.entry.configure(state=state)
        self.send_btn.configure(state=state, text="Sending…" if value else "Send")

    def on_send(self):
        if self.sending or self.session.pending:
            return
        text = self.entry.get().strip()
        if not text:
            return
        self.entry.delete(0, tk.END)
        self.append_message(text, "user")
        self.show_typing()
        self.set_pending(True)
        backend = self.selected_backend()
        api_key = self.api_key.get()

        def worker():
            try:
                res = asyncio.run(send_message(text, backend, api_key, session=self.session))
                err = None
            except Exception as e:
                res, err = None, e
            self.root.after(0, lambda: self.on_response(res, err))

        threading.Thread(target=worker, daemon=True).start()

    def on_send_event(self, event):
        self.on_send()
        return "break"

    def on_response(self, res, err):
        self.hide_typing()
        self.set_pending(False)
        if err is not None:
            self.append_message(f"Error: {err}", "error")
            return
        if res["status"] == "ignored":
            return
        self.append_message(res["reply"], "error" if res["status"] == "error" else "bot")

    def on_clear(self):
        if self.sending:
            return
        self.session.reset()
        self.chat.configure(state=tk.NORMAL)
        self.chat.delete("1.0", tk.END)
        self.chat.configure(state=tk.DISABLED)
        self.append_message(WELCOME_MESSAGE, "bot")


def main():
    root = tk.Tk()
    App(root)
    root.mainloop()


if __name__ == "__main__":
    main()
